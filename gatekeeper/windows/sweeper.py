"""Background eviction of idle client windows.

The sweeper is an explicitly owned asyncio task: the application lifespan
starts it and cancels it on shutdown. Nothing runs at import time.
"""

import asyncio

from gatekeeper.logging.audit import get_audit_logger
from gatekeeper.security.ratelimit import now_ms
from gatekeeper.windows.store import WindowStore

SWEEP_INTERVAL_SECONDS = 600.0
IDLE_RETENTION_MS = 600_000


class EvictionSweeper:
    """Periodically drops windows idle longer than the retention threshold."""

    def __init__(
        self,
        store: WindowStore,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        idle_ms: int = IDLE_RETENTION_MS,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.idle_ms = idle_ms
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        removed = await self.store.prune(now_ms() - self.idle_ms)
        if removed:
            get_audit_logger().info(
                "Evicted idle client windows",
                extra={"audit_data": {"evicted": removed}},
            )
        return removed

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="window-eviction-sweep")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception:
                # Keep sweeping after a failed pass
                get_audit_logger().exception("Window eviction sweep failed")
