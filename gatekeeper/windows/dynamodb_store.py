"""DynamoDB-backed window store for multi-instance deployments.

Every instance reads and writes the same item per client, so the limit
applies across the fleet instead of per process. Items carry an
``expires_at`` TTL attribute and DynamoDB's own TTL sweeper evicts idle
clients. The read-modify-write done by the limiter is not transactional:
two instances handling the same client at the same moment can each admit
a request the other would have counted.
"""

import asyncio

from gatekeeper.windows.models import ClientWindow
from gatekeeper.windows.store import WindowStore


class DynamoDBWindowStore(WindowStore):
    """Stores ClientWindow items keyed by client_key."""

    def __init__(self, table_name: str, region: str = "us-east-1", ttl_ms: int = 600_000):
        self._table_name = table_name
        self._region = region
        self._ttl_ms = ttl_ms
        self._table = None

    def _get_table(self):
        """Lazy-init boto3 Table resource."""
        if self._table is None:
            import boto3

            dynamodb = boto3.resource("dynamodb", region_name=self._region)
            self._table = dynamodb.Table(self._table_name)
        return self._table

    async def get(self, client_key: str) -> ClientWindow | None:
        return await asyncio.to_thread(self._get_item, client_key)

    async def set(self, window: ClientWindow) -> None:
        await asyncio.to_thread(self._put_item, window)

    async def prune(self, idle_before_ms: int) -> int:
        # Eviction is delegated to the table's TTL on expires_at
        return 0

    async def delete(self, client_key: str) -> None:
        await asyncio.to_thread(
            self._get_table().delete_item, Key={"client_key": client_key}
        )

    def _get_item(self, client_key: str) -> ClientWindow | None:
        resp = self._get_table().get_item(Key={"client_key": client_key})
        item = resp.get("Item")
        if not item:
            return None
        # boto3 returns numbers as Decimal
        return ClientWindow(
            client_key=item["client_key"],
            timestamps=[int(t) for t in item.get("timestamps", [])],
            blocked=bool(item.get("blocked", False)),
        )

    def _put_item(self, window: ClientWindow) -> None:
        latest = window.latest() or 0
        self._get_table().put_item(
            Item={
                "client_key": window.client_key,
                "timestamps": window.timestamps,
                "blocked": window.blocked,
                "expires_at": (latest + self._ttl_ms) // 1000,
            }
        )
