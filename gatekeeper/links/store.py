"""Link store abstraction + JSON file implementation."""

import json
import os
from abc import ABC, abstractmethod

from gatekeeper.links.models import ClickEvent, ShortLink


class LinkConflictError(Exception):
    """Raised when a short code is already taken."""


class LinkStore(ABC):
    """Abstract base for short link persistence."""

    @abstractmethod
    async def get_by_code(self, short_code: str) -> ShortLink | None:
        ...

    @abstractmethod
    async def create(self, link: ShortLink) -> ShortLink:
        """Persist a new link. Raises LinkConflictError if the code exists."""
        ...

    @abstractmethod
    async def list_by_owner(self, user_email: str) -> list[ShortLink]:
        """All links owned by an editor, newest first."""
        ...

    @abstractmethod
    async def increment_clicks(self, short_code: str) -> None:
        ...

    @abstractmethod
    async def record_click(self, event: ClickEvent) -> None:
        ...


class JSONLinkStore(LinkStore):
    """File-backed link store. Reloads on mtime change, writes on every mutation."""

    def __init__(self, path: str):
        self._path = path
        self._links: dict[str, ShortLink] = {}
        self._clicks: list[ClickEvent] = []
        self._last_mtime: float = 0.0
        self._load()

    def _load(self) -> None:
        try:
            mtime = os.path.getmtime(self._path)
        except OSError:
            return

        if mtime == self._last_mtime:
            return

        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)

        self._links = {
            entry["short_code"]: ShortLink(**entry) for entry in data.get("links", [])
        }
        self._clicks = [ClickEvent(**entry) for entry in data.get("clicks", [])]
        self._last_mtime = mtime

    def _save(self) -> None:
        data = {
            "links": [link.to_dict() for link in self._links.values()],
            "clicks": [event.to_dict() for event in self._clicks],
        }
        tmp_path = f"{self._path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self._path)
        self._last_mtime = os.path.getmtime(self._path)

    async def get_by_code(self, short_code: str) -> ShortLink | None:
        self._load()
        return self._links.get(short_code)

    async def create(self, link: ShortLink) -> ShortLink:
        self._load()
        if link.short_code in self._links:
            raise LinkConflictError(link.short_code)
        self._links[link.short_code] = link
        self._save()
        return link

    async def list_by_owner(self, user_email: str) -> list[ShortLink]:
        self._load()
        owned = [link for link in self._links.values() if link.user_email == user_email]
        return sorted(owned, key=lambda link: link.created_at, reverse=True)

    async def increment_clicks(self, short_code: str) -> None:
        self._load()
        link = self._links.get(short_code)
        if link is None:
            return
        link.clicks += 1
        self._save()

    async def record_click(self, event: ClickEvent) -> None:
        self._load()
        self._clicks.append(event)
        self._save()

    def clicks_for(self, url_id: str) -> list[ClickEvent]:
        return [event for event in self._clicks if event.url_id == url_id]
