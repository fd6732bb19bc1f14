"""Decides which requests the gatekeeper applies to."""

DEFAULT_API_PREFIX = "/api"


def is_in_scope(path: str, prefix: str = DEFAULT_API_PREFIX) -> bool:
    return path.startswith(prefix)
