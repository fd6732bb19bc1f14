"""Short link records."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ShortLink:
    id: str
    original_url: str
    short_code: str
    user_email: str
    title: str
    clicks: int = 0
    created_at: str = field(default_factory=utc_now_iso)
    expires_at: str | None = None  # ISO-8601, None = never
    is_active: bool = True
    custom_code: bool = False

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self.expires_at:
            return False
        now = now or datetime.now(timezone.utc)
        expires = datetime.fromisoformat(self.expires_at)
        if expires.tzinfo is None:
            # Offset-less values are stored in UTC
            expires = expires.replace(tzinfo=timezone.utc)
        return expires < now

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ClickEvent:
    url_id: str
    user_agent: str = ""
    referer: str = ""
    ip_address: str | None = None
    clicked_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return asdict(self)
