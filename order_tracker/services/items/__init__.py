"""
Item Store Factory

Single entry point for building an item store from settings.

Usage:
    from order_tracker.services.items import build_item_store

    store = build_item_store(get_settings())
    created = await store.create_items(table_id, [NewItem(quantity=2, menu_id=menu_id)])
    await store.close()

The store is built explicitly (the API lifespan does it once) and handed
to request handlers through dependency injection; there is no module
level instance.

Version: 1.0.0
"""

import logging

from order_tracker.core.config import Settings
from order_tracker.database import build_engine, build_session_maker
from order_tracker.services.items.base import (
    MAX_ITEMS_LIMIT,
    BaseItemStore,
    FilterParams,
    ItemUpdate,
    NewItem,
    Pagination,
    PartialItem,
    PartialItemReturn,
)
from order_tracker.services.items.queries import BuiltQuery, build_insert_items, build_update_items
from order_tracker.services.items.sql import SqlItemStore

logger = logging.getLogger(__name__)


def build_item_store(settings: Settings) -> SqlItemStore:
    """
    Build a SqlItemStore with its own engine and connection pool.

    Args:
        settings: Application settings (database URL and pool sizing)

    Returns:
        SqlItemStore: Store owning the new pool; call `close()` to release it
    """
    engine = build_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=settings.db_echo,
    )
    logger.info(f"Item store: {engine.dialect.name} database ({settings.env_mode.value} mode)")
    return SqlItemStore(build_session_maker(engine))


# Export commonly used types and functions
__all__ = [
    "build_item_store",
    "MAX_ITEMS_LIMIT",
    "BaseItemStore",
    "SqlItemStore",
    "BuiltQuery",
    "build_insert_items",
    "build_update_items",
    "FilterParams",
    "ItemUpdate",
    "NewItem",
    "Pagination",
    "PartialItem",
    "PartialItemReturn",
]
