"""
SqlItemStore against an in-memory SQLite database.

Covers batch create/update semantics, the batch limit, remaining-items
filtering and pagination, single reads/deletes and error wrapping.
"""

import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from order_tracker.core.exceptions import (
    LimitExceededError,
    NotFoundError,
    OperationTimeoutError,
    StoreError,
    ValidationError,
)
from order_tracker.models import Item
from order_tracker.services.items import (
    MAX_ITEMS_LIMIT,
    FilterParams,
    ItemUpdate,
    NewItem,
    Pagination,
)


async def count_items(session_maker) -> int:
    async with session_maker() as session:
        result = await session.execute(select(func.count(Item.id)))
        return result.scalar_one()


async def snapshot(session_maker) -> dict:
    async with session_maker() as session:
        result = await session.execute(select(Item.id, Item.quantity, Item.delivered_quantity))
        return {row.id: (row.quantity, row.delivered_quantity) for row in result.all()}


# =============================================================================
# CREATE
# =============================================================================

@pytest.mark.parametrize("size", [1, 7, MAX_ITEMS_LIMIT])
async def test_create_items_persists_every_row(store, session_maker, seed, size):
    new_items = [NewItem(quantity=i % 4 + 1, menu_id=seed["pizza_id"]) for i in range(size)]

    created = await store.create_items(seed["table_id"], new_items)

    assert len(created) == size
    assert len({item.id for item in created}) == size
    assert all(item.delivered_quantity == 0 for item in created)
    assert await count_items(session_maker) == size

    stored = await snapshot(session_maker)
    for item, request in zip(created, new_items):
        assert stored[item.id] == (request.quantity, 0)


async def test_create_items_over_limit_persists_nothing(store, session_maker, seed):
    new_items = [NewItem(quantity=1, menu_id=seed["pizza_id"])] * (MAX_ITEMS_LIMIT + 1)

    with pytest.raises(LimitExceededError) as exc_info:
        await store.create_items(seed["table_id"], new_items)

    assert exc_info.value.limit == MAX_ITEMS_LIMIT
    assert exc_info.value.size == MAX_ITEMS_LIMIT + 1
    assert await count_items(session_maker) == 0


async def test_create_items_empty_batch_is_noop(store, session_maker, seed):
    assert await store.create_items(seed["table_id"], []) == []
    assert await count_items(session_maker) == 0


async def test_create_items_rejects_negative_quantity(store, session_maker, seed):
    new_items = [
        NewItem(quantity=1, menu_id=seed["pizza_id"]),
        NewItem(quantity=-1, menu_id=seed["pizza_id"]),
    ]

    with pytest.raises(ValidationError) as exc_info:
        await store.create_items(seed["table_id"], new_items)

    assert exc_info.value.field == "quantity"
    assert await count_items(session_maker) == 0


async def test_create_items_duplicate_id_fails_whole_batch(store, session_maker, seed, monkeypatch):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=1, menu_id=seed["pizza_id"])])

    # Force a primary key clash on the second row of the next batch
    ids = iter([uuid.UUID(int=1), created[0].id])
    monkeypatch.setattr(uuid, "uuid4", lambda: next(ids))

    with pytest.raises(StoreError) as exc_info:
        await store.create_items(
            seed["table_id"],
            [NewItem(quantity=1, menu_id=seed["pizza_id"]), NewItem(quantity=1, menu_id=seed["pizza_id"])],
        )
    monkeypatch.undo()

    assert "creating items" in str(exc_info.value)
    assert exc_info.value.operation == "creating items"
    assert exc_info.value.__cause__ is exc_info.value.original
    assert await count_items(session_maker) == 1


# =============================================================================
# UPDATE
# =============================================================================

async def test_update_items_empty_batch_returns_zero(store):
    assert await store.update_items([]) == 0


async def test_update_items_over_limit(store, seed):
    updates = [ItemUpdate(id=uuid.uuid4(), quantity=1) for _ in range(MAX_ITEMS_LIMIT + 1)]

    with pytest.raises(LimitExceededError):
        await store.update_items(updates)


async def test_update_quantity_replaces_and_delivered_adds(store, seed):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=9, menu_id=seed["pizza_id"])])
    item_id = created[0].id

    assert await store.update_items([ItemUpdate(id=item_id, delivered_quantity=1)]) == 1
    assert await store.update_items([ItemUpdate(id=item_id, quantity=5, delivered_quantity=2)]) == 1

    item = await store.get_item(seed["table_id"], item_id)
    assert item.quantity == 5
    assert item.delivered_quantity == 3


async def test_update_absent_fields_leave_columns_unchanged(store, seed):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=4, menu_id=seed["pizza_id"])])
    item_id = created[0].id
    await store.update_items([ItemUpdate(id=item_id, delivered_quantity=2)])

    assert await store.update_items([ItemUpdate(id=item_id)]) == 1

    item = await store.get_item(seed["table_id"], item_id)
    assert (item.quantity, item.delivered_quantity) == (4, 2)


async def test_update_leaves_rows_outside_batch_untouched(store, session_maker, seed):
    created = await store.create_items(
        seed["table_id"],
        [NewItem(quantity=q, menu_id=seed["pizza_id"]) for q in (3, 4, 5, 6)],
    )
    before = await snapshot(session_maker)

    updated = await store.update_items([
        ItemUpdate(id=created[0].id, quantity=10),
        ItemUpdate(id=created[2].id, delivered_quantity=1),
    ])

    after = await snapshot(session_maker)
    assert updated == 2
    assert after[created[0].id] == (10, 0)
    assert after[created[2].id] == (5, 1)
    assert after[created[1].id] == before[created[1].id]
    assert after[created[3].id] == before[created[3].id]


async def test_update_counts_only_existing_rows(store, seed):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=2, menu_id=seed["pizza_id"])])

    updated = await store.update_items([
        ItemUpdate(id=created[0].id, quantity=3),
        ItemUpdate(id=uuid.uuid4(), quantity=3),
    ])

    assert updated == 1
    assert await store.update_items([ItemUpdate(id=uuid.uuid4(), quantity=1)]) == 0


async def test_update_rejects_negative_values(store, seed):
    with pytest.raises(ValidationError) as exc_info:
        await store.update_items([ItemUpdate(id=uuid.uuid4(), delivered_quantity=-1)])
    assert exc_info.value.field == "delivered_quantity"

    with pytest.raises(ValidationError) as exc_info:
        await store.update_items([ItemUpdate(id=uuid.uuid4(), quantity=-3)])
    assert exc_info.value.field == "quantity"


async def test_update_overdelivery_fails_whole_batch(store, session_maker, seed):
    created = await store.create_items(
        seed["table_id"],
        [NewItem(quantity=2, menu_id=seed["pizza_id"]), NewItem(quantity=2, menu_id=seed["salad_id"])],
    )
    before = await snapshot(session_maker)

    with pytest.raises(StoreError) as exc_info:
        await store.update_items([
            ItemUpdate(id=created[0].id, delivered_quantity=1),
            ItemUpdate(id=created[1].id, delivered_quantity=3),
        ])

    assert exc_info.value.operation == "updating items"
    assert await snapshot(session_maker) == before


# =============================================================================
# REMAINING ITEMS
# =============================================================================

async def test_list_remaining_excludes_fully_delivered(store, seed):
    created = await store.create_items(
        seed["table_id"],
        [NewItem(quantity=q, menu_id=seed["pizza_id"]) for q in (1, 2, 3, 0)],
    )
    await store.update_items([
        ItemUpdate(id=created[0].id, delivered_quantity=1),
        ItemUpdate(id=created[1].id, delivered_quantity=1),
    ])

    remaining = await store.list_remaining_items(seed["table_id"])

    assert {item.id for item in remaining} == {created[1].id, created[2].id}
    assert all(item.quantity > item.delivered_quantity for item in remaining)
    assert all(item.prep_time == 15 for item in remaining)


async def test_list_remaining_filters_by_menu(store, seed):
    await store.create_items(
        seed["table_id"],
        [
            NewItem(quantity=1, menu_id=seed["pizza_id"]),
            NewItem(quantity=1, menu_id=seed["salad_id"]),
            NewItem(quantity=2, menu_id=seed["salad_id"]),
        ],
    )

    salads = await store.list_remaining_items(
        seed["table_id"], filters=FilterParams(menu_id=seed["salad_id"])
    )
    everything = await store.list_remaining_items(seed["table_id"])

    assert len(salads) == 2
    assert all(item.menu_id == seed["salad_id"] for item in salads)
    assert all(item.prep_time == 5 for item in salads)
    assert len(everything) == 3


async def test_list_remaining_scoped_to_table(store, seed):
    other_table = uuid.uuid4()
    await store.create_items(seed["table_id"], [NewItem(quantity=1, menu_id=seed["pizza_id"])])
    await store.create_items(other_table, [NewItem(quantity=1, menu_id=seed["pizza_id"])] * 2)

    assert len(await store.list_remaining_items(seed["table_id"])) == 1
    assert len(await store.list_remaining_items(other_table)) == 2


async def test_list_remaining_paginates_with_defaults(store, seed):
    await store.create_items(
        seed["table_id"],
        [NewItem(quantity=1, menu_id=seed["pizza_id"]) for _ in range(25)],
    )

    first_page = await store.list_remaining_items(seed["table_id"])
    default_page = await store.list_remaining_items(seed["table_id"], Pagination())
    last_page = await store.list_remaining_items(seed["table_id"], Pagination(limit=10, offset=20))
    all_rows = await store.list_remaining_items(seed["table_id"], Pagination(limit=100))

    assert len(first_page) == 10
    assert [i.id for i in default_page] == [i.id for i in first_page]
    assert len(last_page) == 5
    assert len(all_rows) == 25
    assert [i.id for i in all_rows[:10]] == [i.id for i in first_page]
    assert [i.id for i in all_rows[20:]] == [i.id for i in last_page]


async def test_list_remaining_unknown_menu_has_no_prep_time(store, seed):
    await store.create_items(seed["table_id"], [NewItem(quantity=1, menu_id=uuid.uuid4())])

    remaining = await store.list_remaining_items(seed["table_id"])

    assert len(remaining) == 1
    assert remaining[0].prep_time is None


# =============================================================================
# SINGLE ITEM
# =============================================================================

async def test_get_item_requires_matching_table(store, seed):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=2, menu_id=seed["pizza_id"])])

    item = await store.get_item(seed["table_id"], created[0].id)
    assert item.id == created[0].id
    assert item.prep_time == 15
    assert item.remaining_quantity == 2
    assert item.created_at is not None

    with pytest.raises(NotFoundError):
        await store.get_item(uuid.uuid4(), created[0].id)


async def test_delete_item_scoped_to_table(store, seed):
    created = await store.create_items(seed["table_id"], [NewItem(quantity=2, menu_id=seed["pizza_id"])])

    assert await store.delete_item(uuid.uuid4(), created[0].id) is False
    assert await store.delete_item(seed["table_id"], created[0].id) is True
    assert await store.delete_item(seed["table_id"], created[0].id) is False


# =============================================================================
# END-TO-END SCENARIO
# =============================================================================

async def test_order_delivery_lifecycle(store, seed):
    table_id, menu_id = seed["table_id"], seed["pizza_id"]

    created = await store.create_items(table_id, [NewItem(quantity=2, menu_id=menu_id)])
    assert len(created) == 1
    assert created[0].delivered_quantity == 0
    item_id = created[0].id

    assert await store.update_items([ItemUpdate(id=item_id, delivered_quantity=1)]) == 1
    item = await store.get_item(table_id, item_id)
    assert (item.quantity, item.delivered_quantity) == (2, 1)
    assert len(await store.list_remaining_items(table_id)) == 1

    assert await store.update_items([ItemUpdate(id=item_id, delivered_quantity=1)]) == 1
    item = await store.get_item(table_id, item_id)
    assert item.delivered_quantity == 2
    assert await store.list_remaining_items(table_id) == []

    assert await store.delete_item(table_id, item_id) is True
    assert await store.delete_item(table_id, item_id) is False
    with pytest.raises(NotFoundError):
        await store.get_item(table_id, item_id)


# =============================================================================
# TIMEOUTS & LIFECYCLE
# =============================================================================

async def test_timeout_raises_operation_timeout(store, seed, monkeypatch):
    async def slow_run(operation, work, timeout):
        work.close()
        return await original_run(operation, asyncio.sleep(1), timeout)

    original_run = store._run
    monkeypatch.setattr(store, "_run", slow_run)

    with pytest.raises(OperationTimeoutError) as exc_info:
        await store.list_remaining_items(seed["table_id"], timeout=0.01)

    assert isinstance(exc_info.value, StoreError)
    assert exc_info.value.timeout == 0.01
    assert exc_info.value.operation == "listing remaining items"


async def test_health_check(store):
    assert await store.health_check() is True
