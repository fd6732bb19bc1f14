"""CORS allow-list enforcement.

Origins are matched exactly against the configured allow-list. An allowed
origin is echoed back (never a wildcard) so credentialed requests work.
Requests without an Origin header are same-origin or non-browser calls and
are not subject to CORS rejection.
"""

from dataclasses import dataclass, field

from gatekeeper.config.settings import Settings

CORS_REJECTION_MESSAGE = "CORS error: Origin not allowed"


@dataclass
class CorsDecision:
    allowed: bool
    origin: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


def cors_headers(origin: str, settings: Settings) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": settings.cors_allow_methods,
        "Access-Control-Allow-Headers": settings.cors_allow_headers,
    }


def evaluate_cors(origin: str | None, settings: Settings) -> CorsDecision:
    """Check a request's Origin against the allow-list.

    Returns a decision carrying the headers to attach when the origin is
    allowed, an empty header set when no origin was sent, and
    ``allowed=False`` when the origin is not on the list.
    """
    if not origin:
        return CorsDecision(allowed=True)

    if origin not in settings.allowed_origins_list:
        return CorsDecision(allowed=False, origin=origin)

    return CorsDecision(allowed=True, origin=origin, headers=cors_headers(origin, settings))
