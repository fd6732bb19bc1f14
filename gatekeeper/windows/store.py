"""Window store abstraction + in-memory implementation."""

from abc import ABC, abstractmethod

from gatekeeper.windows.models import ClientWindow


class WindowStore(ABC):
    """Abstract base for ClientWindow persistence.

    The rate limiter only talks to this interface, so the sliding-window
    decision logic stays the same whether windows live in process memory
    or in a shared key-value store.
    """

    @abstractmethod
    async def get(self, client_key: str) -> ClientWindow | None:
        """Return the window for a client, or None on first contact."""
        ...

    @abstractmethod
    async def set(self, window: ClientWindow) -> None:
        ...

    @abstractmethod
    async def prune(self, idle_before_ms: int) -> int:
        """Drop windows whose latest timestamp is older than idle_before_ms.

        Windows holding no timestamps are dropped too. Returns the number
        of windows removed.
        """
        ...

    @abstractmethod
    async def delete(self, client_key: str) -> None:
        ...


class InMemoryWindowStore(WindowStore):
    """Process-local store. State is lost on restart.

    None of the methods await anything, so a limiter decision made against
    this store cannot interleave with another request's on the event loop.
    """

    def __init__(self):
        self._windows: dict[str, ClientWindow] = {}

    async def get(self, client_key: str) -> ClientWindow | None:
        return self._windows.get(client_key)

    async def set(self, window: ClientWindow) -> None:
        self._windows[window.client_key] = window

    async def prune(self, idle_before_ms: int) -> int:
        stale = [
            key for key, window in self._windows.items()
            if not window.timestamps or window.latest() < idle_before_ms
        ]
        for key in stale:
            del self._windows[key]
        return len(stale)

    async def delete(self, client_key: str) -> None:
        self._windows.pop(client_key, None)

    def clear(self) -> None:
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, client_key: str) -> bool:
        return client_key in self._windows
