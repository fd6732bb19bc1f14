"""Factory for the window store backend and the rate limiter built on it."""

from gatekeeper.config.settings import get_settings
from gatekeeper.security.ratelimit import SlidingWindowLimiter
from gatekeeper.windows.store import InMemoryWindowStore, WindowStore

_store: WindowStore | None = None
_limiter: SlidingWindowLimiter | None = None


def get_window_store() -> WindowStore:
    """Get the window store singleton. Unknown backends fall back to memory."""
    global _store
    if _store is not None:
        return _store

    settings = get_settings()

    if settings.rate_limit_store_backend == "dynamodb":
        # Lazy import to avoid boto3 dependency when not needed
        from gatekeeper.windows.dynamodb_store import DynamoDBWindowStore
        _store = DynamoDBWindowStore(
            table_name=settings.rate_limit_table_name,
            region=settings.aws_region,
            ttl_ms=settings.eviction_idle_ms,
        )
        return _store

    _store = InMemoryWindowStore()
    return _store


def get_rate_limiter() -> SlidingWindowLimiter:
    global _limiter
    if _limiter is not None:
        return _limiter

    settings = get_settings()
    _limiter = SlidingWindowLimiter(
        get_window_store(),
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
        block_duration_ms=settings.rate_limit_block_ms,
    )
    return _limiter
