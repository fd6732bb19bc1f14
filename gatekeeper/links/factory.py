"""Factory for link store backends."""

from gatekeeper.config.settings import get_settings
from gatekeeper.links.store import JSONLinkStore, LinkStore

_store: LinkStore | None = None


def get_link_store() -> LinkStore:
    """Get the link store singleton."""
    global _store
    if _store is not None:
        return _store

    settings = get_settings()

    if settings.link_store_backend == "dynamodb":
        # Lazy import to avoid boto3 dependency when not needed
        from gatekeeper.links.dynamodb_store import DynamoDBLinkStore
        _store = DynamoDBLinkStore(
            table_name=settings.links_table_name,
            clicks_table_name=settings.link_clicks_table_name,
            region=settings.aws_region,
        )
        return _store

    _store = JSONLinkStore(settings.link_store_path)
    return _store
