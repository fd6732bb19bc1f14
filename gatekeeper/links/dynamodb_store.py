"""DynamoDB-backed link store.

Links live in one table keyed by short_code with a GSI on user_email
(``user_email_index``); click events go to a second table.
"""

import asyncio
import uuid

from gatekeeper.links.models import ClickEvent, ShortLink
from gatekeeper.links.store import LinkConflictError, LinkStore


class DynamoDBLinkStore(LinkStore):

    def __init__(self, table_name: str, clicks_table_name: str, region: str = "us-east-1"):
        self._table_name = table_name
        self._clicks_table_name = clicks_table_name
        self._region = region
        self._table = None
        self._clicks_table = None

    def _resource(self):
        import boto3

        return boto3.resource("dynamodb", region_name=self._region)

    def _get_table(self):
        """Lazy-init boto3 Table resource."""
        if self._table is None:
            self._table = self._resource().Table(self._table_name)
        return self._table

    def _get_clicks_table(self):
        if self._clicks_table is None:
            self._clicks_table = self._resource().Table(self._clicks_table_name)
        return self._clicks_table

    async def get_by_code(self, short_code: str) -> ShortLink | None:
        return await asyncio.to_thread(self._get_item, short_code)

    async def create(self, link: ShortLink) -> ShortLink:
        await asyncio.to_thread(self._put_new, link)
        return link

    async def list_by_owner(self, user_email: str) -> list[ShortLink]:
        links = await asyncio.to_thread(self._query_owner, user_email)
        return sorted(links, key=lambda link: link.created_at, reverse=True)

    async def increment_clicks(self, short_code: str) -> None:
        await asyncio.to_thread(
            self._get_table().update_item,
            Key={"short_code": short_code},
            UpdateExpression="ADD clicks :one",
            ExpressionAttributeValues={":one": 1},
        )

    async def record_click(self, event: ClickEvent) -> None:
        item = {"id": uuid.uuid4().hex, **event.to_dict()}
        await asyncio.to_thread(self._get_clicks_table().put_item, Item=item)

    def _get_item(self, short_code: str) -> ShortLink | None:
        resp = self._get_table().get_item(Key={"short_code": short_code})
        item = resp.get("Item")
        if not item:
            return None
        return _to_link(item)

    def _put_new(self, link: ShortLink) -> None:
        from botocore.exceptions import ClientError

        try:
            self._get_table().put_item(
                Item=link.to_dict(),
                ConditionExpression="attribute_not_exists(short_code)",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise LinkConflictError(link.short_code) from e
            raise

    def _query_owner(self, user_email: str) -> list[ShortLink]:
        from boto3.dynamodb.conditions import Key

        table = self._get_table()
        kwargs = {
            "IndexName": "user_email_index",
            "KeyConditionExpression": Key("user_email").eq(user_email),
        }
        links = []
        while True:
            resp = table.query(**kwargs)
            links.extend(_to_link(item) for item in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return links
            kwargs["ExclusiveStartKey"] = last_key


def _to_link(item: dict) -> ShortLink:
    return ShortLink(
        id=item["id"],
        original_url=item["original_url"],
        short_code=item["short_code"],
        user_email=item.get("user_email", ""),
        title=item.get("title", ""),
        clicks=int(item.get("clicks", 0)),
        created_at=item.get("created_at", ""),
        expires_at=item.get("expires_at"),
        is_active=bool(item.get("is_active", True)),
        custom_code=bool(item.get("custom_code", False)),
    )
