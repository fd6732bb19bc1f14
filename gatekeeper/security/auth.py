"""API key authentication for blog editors.

Validates the X-API-Key header against the configured editor keys and
resolves the editor identity that owns created short links.
"""

import hmac
from dataclasses import dataclass

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from gatekeeper.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@dataclass
class Editor:
    email: str


async def verify_editor(api_key: str | None = Security(api_key_header)) -> Editor:
    """FastAPI dependency that resolves the calling editor from their key."""
    if api_key is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    match: str | None = None
    for valid_key, email in get_settings().editor_keys.items():
        # Always iterate all keys to maintain constant-time behavior
        if hmac.compare_digest(api_key, valid_key):
            match = email

    if match is None:
        raise HTTPException(status_code=403, detail="Forbidden")
    return Editor(email=match)
