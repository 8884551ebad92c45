"""
Shared fixtures: an in-memory SQLite database with the full schema and
one seeded table and two dishes.
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool

from order_tracker.database import build_engine, build_session_maker, init_db
from order_tracker.models import DiningTable, Menu
from order_tracker.services.items import SqlItemStore


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
def store(session_maker):
    return SqlItemStore(session_maker)


@pytest.fixture
async def seed(session_maker):
    """One table, a pizza (15 min) and a salad (5 min)."""
    table = DiningTable(id=uuid.uuid4(), name="Table 1")
    pizza = Menu(id=uuid.uuid4(), name="Pizza", price=Decimal("15.00"), prep_time=15)
    salad = Menu(id=uuid.uuid4(), name="Salad", price=Decimal("8.50"), prep_time=5)

    async with session_maker() as session:
        async with session.begin():
            session.add_all([table, pizza, salad])

    return {"table_id": table.id, "pizza_id": pizza.id, "salad_id": salad.id}
