"""Short link operations used by the API routes.

Validation failures and lookup misses raise LinkError carrying the HTTP
status and the message returned to the caller.
"""

import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

from gatekeeper.links.models import ClickEvent, ShortLink
from gatekeeper.links.store import LinkConflictError, LinkStore
from gatekeeper.logging.audit import get_audit_logger

CODE_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 10
MAX_EXPIRES_IN_DAYS = 36_500
CUSTOM_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,10}$")


class LinkError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def generate_short_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def title_from_url(url: str) -> str:
    return urlparse(url).hostname or url


def asset_title(file_name: str | None) -> str:
    """'my_photo-v2.png' -> 'Asset: my photo v2'."""
    if not file_name:
        return "Asset: Asset"
    stem = re.sub(r"\.[^/.]+$", "", file_name)
    return f"Asset: {re.sub(r'[_-]', ' ', stem)}"


async def _unique_code(store: LinkStore) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        candidate = generate_short_code()
        if await store.get_by_code(candidate) is None:
            return candidate
    raise LinkError(500, "Failed to generate unique short code")


async def _insert(store: LinkStore, link: ShortLink) -> ShortLink:
    try:
        created = await store.create(link)
    except LinkConflictError as e:
        raise LinkError(409, "Custom code already exists") from e
    get_audit_logger().info(
        "Short link created",
        extra={"audit_data": {
            "short_code": created.short_code,
            "user_email": created.user_email,
            "custom_code": created.custom_code,
        }},
    )
    return created


async def create_link(store: LinkStore, body: dict, user_email: str) -> ShortLink:
    """Create a short link from a ``POST /api/shorten`` payload."""
    original_url = body.get("originalUrl")
    custom_code = body.get("customCode")
    title = body.get("title")
    expires_in = body.get("expiresIn")

    if not original_url or not isinstance(original_url, str):
        raise LinkError(400, "URL is required")
    if not is_valid_url(original_url):
        raise LinkError(400, "Invalid URL format")

    if custom_code:
        if not isinstance(custom_code, str) or not CUSTOM_CODE_PATTERN.match(custom_code):
            raise LinkError(400, "Custom code must be 3-10 characters (letters, numbers, _, -)")
        if await store.get_by_code(custom_code) is not None:
            raise LinkError(409, "Custom code already exists")
        short_code = custom_code
    else:
        short_code = await _unique_code(store)

    expires_at = None
    if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool) and expires_in > 0:
        if expires_in > MAX_EXPIRES_IN_DAYS:
            raise LinkError(400, "Invalid expiration")
        expires_at = (datetime.now(timezone.utc) + timedelta(days=expires_in)).isoformat()

    link = ShortLink(
        id=uuid.uuid4().hex,
        original_url=original_url,
        short_code=short_code,
        user_email=user_email,
        title=title or title_from_url(original_url),
        expires_at=expires_at,
        custom_code=bool(custom_code),
    )
    return await _insert(store, link)


async def create_asset_link(store: LinkStore, body: dict, user_email: str) -> ShortLink:
    """Create a never-expiring link for an uploaded asset."""
    asset_url = body.get("assetUrl")
    if not asset_url or not isinstance(asset_url, str):
        raise LinkError(400, "Asset URL is required")

    link = ShortLink(
        id=uuid.uuid4().hex,
        original_url=asset_url,
        short_code=await _unique_code(store),
        user_email=user_email,
        title=asset_title(body.get("fileName")),
    )
    return await _insert(store, link)


async def resolve_link(store: LinkStore, short_code: str) -> ShortLink:
    """Find the redirect target for a code, rejecting inactive or expired links."""
    link = await store.get_by_code(short_code)
    if link is None:
        raise LinkError(404, "URL not found")
    if not link.is_active:
        raise LinkError(404, "URL is inactive")
    if link.is_expired():
        raise LinkError(404, "URL has expired")
    return link


async def track_click(store: LinkStore, link: ShortLink, user_agent: str,
                      referer: str, forwarded_for: str) -> None:
    """Count a redirect and log its request details. Failures are only logged."""
    ip_address = forwarded_for.split(",")[0].strip() or None
    try:
        await store.increment_clicks(link.short_code)
        await store.record_click(ClickEvent(
            url_id=link.id,
            user_agent=user_agent,
            referer=referer,
            ip_address=ip_address,
        ))
    except Exception:
        get_audit_logger().exception(
            "Failed to track click",
            extra={"audit_data": {"short_code": link.short_code}},
        )


def short_url(base_url: str, short_code: str) -> str:
    return f"{base_url}/s/{short_code}"


def link_summary(link: ShortLink, base_url: str) -> dict:
    return {
        "id": link.id,
        "originalUrl": link.original_url,
        "shortCode": link.short_code,
        "shortUrl": short_url(base_url, link.short_code),
        "title": link.title,
        "clicks": link.clicks,
        "createdAt": link.created_at,
        "expiresAt": link.expires_at,
    }


def link_listing(link: ShortLink, base_url: str) -> dict:
    return {
        **link_summary(link, base_url),
        "isActive": link.is_active,
        "customCode": link.custom_code,
    }
