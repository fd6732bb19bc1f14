"""Per-client rate tracking record."""

from dataclasses import dataclass, field


@dataclass
class ClientWindow:
    client_key: str
    timestamps: list[int] = field(default_factory=list)  # ms epoch, chronological
    blocked: bool = False

    def latest(self) -> int | None:
        return max(self.timestamps) if self.timestamps else None
