"""
SQL Item Store Implementation

Item store backed by any SQLAlchemy async engine (PostgreSQL via psycopg
in deployment, SQLite via aiosqlite in tests).

Behavior:
    - Batches are capped at MAX_ITEMS_LIMIT and checked before any SQL is built
    - Each batch is one statement inside its own transaction, so it either
      lands completely or not at all
    - Store failures are logged and re-raised as StoreError tagged with the
      operation name; nothing is retried
    - Every call takes an optional timeout; on expiry the statement is
      cancelled, the transaction rolled back and OperationTimeoutError raised

Version: 1.0.0
"""

import asyncio
import logging
import uuid
from typing import Awaitable, List, Optional, TypeVar

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from order_tracker.core.exceptions import (
    LimitExceededError,
    NotFoundError,
    OperationTimeoutError,
    StoreError,
    ValidationError,
)
from order_tracker.models import Item, Menu
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
from order_tracker.services.items.queries import build_insert_items, build_update_items

logger = logging.getLogger(__name__)

T = TypeVar("T")

CREATING_ITEMS = "creating items"
UPDATING_ITEMS = "updating items"
LISTING_ITEMS = "listing remaining items"
FETCHING_ITEM = "fetching item"
DELETING_ITEM = "deleting item"


def _item_with_prep_time():
    """SELECT of the read projection, line-item LEFT JOIN menu."""
    return (
        select(
            Item.id,
            Item.tables_id,
            Item.menu_id,
            Item.quantity,
            Item.delivered_quantity,
            Item.created_at,
            Menu.prep_time.label("prep_time"),
        )
        .select_from(Item)
        .outerjoin(Menu, Item.menu_id == Menu.id)
    )


def _to_return(row) -> PartialItemReturn:
    return PartialItemReturn(
        id=row.id,
        tables_id=row.tables_id,
        menu_id=row.menu_id,
        quantity=row.quantity,
        delivered_quantity=row.delivered_quantity,
        created_at=row.created_at,
        prep_time=row.prep_time,
    )


class SqlItemStore(BaseItemStore):
    """
    Item store on top of a pooled SQLAlchemy engine.

    The session factory is passed in; the store holds no other state, so
    one instance can serve any number of concurrent requests.

    Attributes:
        max_items: Largest batch accepted by create_items/update_items

    Example:
        >>> store = SqlItemStore(build_session_maker(engine))
        >>> created = await store.create_items(table_id, [NewItem(2, menu_id)])
        >>> await store.update_items([ItemUpdate(created[0].id, delivered_quantity=1)])
        1
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_items: int = MAX_ITEMS_LIMIT,
    ):
        self._session_maker = session_maker
        self.max_items = max_items

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _check_batch_size(self, size: int) -> None:
        if size > self.max_items:
            logger.warning(f"Rejected batch of {size} items (limit {self.max_items})")
            raise LimitExceededError(self.max_items, size)

    async def _run(self, operation: str, work: Awaitable[T], timeout: Optional[float]) -> T:
        """Await `work` under `timeout`, translating store failures."""
        try:
            if timeout is None:
                return await work
            return await asyncio.wait_for(work, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timed out {operation} after {timeout}s")
            raise OperationTimeoutError(operation, timeout)
        except SQLAlchemyError as e:
            logger.error(f"Error {operation}: {e}")
            raise StoreError(operation, e) from e

    # =========================================================================
    # BATCH CREATE
    # =========================================================================

    async def create_items(
        self,
        tables_id: uuid.UUID,
        new_items: List[NewItem],
        timeout: Optional[float] = None,
    ) -> List[PartialItem]:
        self._check_batch_size(len(new_items))

        # Whether "nothing created" is an error is up to the caller
        if not new_items:
            return []

        for position, new_item in enumerate(new_items):
            if new_item.quantity < 0:
                raise ValidationError(
                    f"Item {position}: quantity must not be negative",
                    field="quantity",
                )

        query, created = build_insert_items(tables_id, new_items)
        logger.debug(f"Query: {query.sql}")

        async def work() -> None:
            async with self._session_maker() as session:
                async with session.begin():
                    await session.execute(query.to_statement())

        await self._run(CREATING_ITEMS, work(), timeout)

        logger.info(f"{len(created)} items added to table {tables_id}")
        return created

    # =========================================================================
    # BATCH UPDATE
    # =========================================================================

    async def update_items(
        self,
        updates: List[ItemUpdate],
        timeout: Optional[float] = None,
    ) -> int:
        if not updates:
            return 0
        self._check_batch_size(len(updates))

        for position, update in enumerate(updates):
            if update.quantity is not None and update.quantity < 0:
                raise ValidationError(
                    f"Item {position}: quantity must not be negative",
                    field="quantity",
                )
            if update.delivered_quantity is not None and update.delivered_quantity < 0:
                raise ValidationError(
                    f"Item {position}: delivered_quantity must not be negative",
                    field="delivered_quantity",
                )

        query = build_update_items(updates)
        logger.debug(f"Query: {query.sql}")

        async def work() -> int:
            async with self._session_maker() as session:
                async with session.begin():
                    result = await session.execute(query.to_statement())
                    return result.rowcount

        updated = await self._run(UPDATING_ITEMS, work(), timeout)
        logger.info(f"Updated {updated} of {len(updates)} items")
        return updated

    # =========================================================================
    # READS
    # =========================================================================

    async def list_remaining_items(
        self,
        tables_id: uuid.UUID,
        pagination: Optional[Pagination] = None,
        filters: Optional[FilterParams] = None,
        timeout: Optional[float] = None,
    ) -> List[PartialItemReturn]:
        page = (pagination or Pagination()).resolved()
        filters = filters or FilterParams()

        query = (
            _item_with_prep_time()
            .where(Item.tables_id == tables_id)
            .where(Item.quantity > Item.delivered_quantity)
        )
        if filters.menu_id is not None:
            query = query.where(Item.menu_id == filters.menu_id)
        query = (
            query.order_by(Item.created_at.asc(), Item.id.asc())
            .limit(page.limit)
            .offset(page.offset)
        )

        async def work() -> List[PartialItemReturn]:
            async with self._session_maker() as session:
                result = await session.execute(query)
                return [_to_return(row) for row in result.all()]

        return await self._run(LISTING_ITEMS, work(), timeout)

    async def get_item(
        self,
        tables_id: uuid.UUID,
        item_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> PartialItemReturn:
        query = _item_with_prep_time().where(
            Item.tables_id == tables_id,
            Item.id == item_id,
        )

        async def work():
            async with self._session_maker() as session:
                result = await session.execute(query)
                return result.one_or_none()

        row = await self._run(FETCHING_ITEM, work(), timeout)
        if row is None:
            raise NotFoundError(
                f"Item {item_id} not found in table {tables_id}",
                details={"tables_id": str(tables_id), "item_id": str(item_id)},
            )
        return _to_return(row)

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_item(
        self,
        tables_id: uuid.UUID,
        item_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> bool:
        statement = delete(Item).where(Item.tables_id == tables_id, Item.id == item_id)

        async def work() -> int:
            async with self._session_maker() as session:
                async with session.begin():
                    result = await session.execute(statement)
                    return result.rowcount

        deleted = await self._run(DELETING_ITEM, work(), timeout)
        return deleted > 0

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @property
    def engine(self) -> Optional[AsyncEngine]:
        """Engine the session factory is bound to."""
        return self._session_maker.kw.get("bind")

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
