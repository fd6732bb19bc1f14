"""Per-client sliding window rate limiter with a cooldown block.

Each client identity keeps the timestamps (ms epoch) of its accepted
requests from the trailing window. Stale timestamps are pruned on every
check. The request that pushes the count over the limit flips the client
into a block; while blocked every request is rejected until the block
duration has elapsed since the latest recorded timestamp. Rejected requests
during a block are not recorded, so they neither extend nor reset it.

Client identity comes from proxy headers (x-forwarded-for, then
x-real-ip). Requests carrying neither share the "unknown" bucket.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass

from gatekeeper.logging.audit import get_audit_logger
from gatekeeper.windows.models import ClientWindow
from gatekeeper.windows.store import WindowStore

UNKNOWN_CLIENT = "unknown"

MAX_REQUESTS_PER_WINDOW = 60
WINDOW_MS = 60_000
BLOCK_DURATION_MS = 60_000

EXCEEDED_MESSAGE = "Rate limit exceeded. Please try again later."
BLOCKED_MESSAGE = "Too many requests. Please try again later."


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0  # seconds, only set on rejection
    error: str = ""


def client_key_from_headers(headers: Mapping[str, str]) -> str:
    """Derive the rate limit identity. Trusts upstream proxy headers as-is."""
    return headers.get("x-forwarded-for") or headers.get("x-real-ip") or UNKNOWN_CLIENT


def now_ms() -> int:
    return int(time.time() * 1000)


class SlidingWindowLimiter:
    """Rate limit decisions against a WindowStore."""

    def __init__(
        self,
        store: WindowStore,
        max_requests: int = MAX_REQUESTS_PER_WINDOW,
        window_ms: int = WINDOW_MS,
        block_duration_ms: int = BLOCK_DURATION_MS,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.block_duration_ms = block_duration_ms

    @property
    def retry_after_seconds(self) -> int:
        return self.block_duration_ms // 1000

    async def check(self, client_key: str) -> RateLimitResult:
        """Record a request for client_key and decide whether it may proceed."""
        now = now_ms()
        window = await self.store.get(client_key)

        if window is None:
            window = ClientWindow(client_key=client_key)

        if window.blocked:
            latest = window.latest()
            if latest is not None and now - latest < self.block_duration_ms:
                return self._reject(BLOCKED_MESSAGE)
            window.blocked = False
            window.timestamps = [now]
            await self.store.set(window)
            get_audit_logger().info(
                "Client block lifted",
                extra={"audit_data": {
                    "client_key": client_key,
                    "blocked_for_ms": now - latest if latest is not None else None,
                }},
            )
            return self._accept(window)

        window.timestamps = [t for t in window.timestamps if now - t < self.window_ms]
        window.timestamps.append(now)

        if len(window.timestamps) > self.max_requests:
            window.blocked = True
            await self.store.set(window)
            return self._reject(EXCEEDED_MESSAGE)

        await self.store.set(window)
        return self._accept(window)

    async def reset(self, client_key: str) -> None:
        """Clear rate limit state for a client."""
        await self.store.delete(client_key)

    def _accept(self, window: ClientWindow) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - len(window.timestamps)),
        )

    def _reject(self, error: str) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self.max_requests,
            remaining=0,
            retry_after=self.retry_after_seconds,
            error=error,
        )
