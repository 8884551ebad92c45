"""
SQLAlchemy Database Models

Three tables back the tracker:
- tables: dining tables that place orders
- menu: dishes with their price and preparation time
- items: one ordered quantity of a dish for a table, plus how much of it
  has been delivered so far

Version: 1.0.0
"""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.sql import func

from order_tracker.database import Base


class DiningTable(Base):
    """A table in the restaurant."""
    __tablename__ = "tables"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)

    def __repr__(self):
        return f"<Table {self.id} - {self.name}>"


class Menu(Base):
    """A dish that can be ordered."""
    __tablename__ = "menu"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    prep_time = Column(Integer, nullable=False)  # minutes

    def __repr__(self):
        return f"<Menu {self.name} - {self.prep_time}min>"


class Item(Base):
    """
    Order line-item.

    `quantity` is what the table asked for, `delivered_quantity` is how much
    of it has reached the table. Rows are written in bulk by the item store
    with raw multi-row statements, so Python-side defaults here never run
    for them; the server defaults and check constraints do.
    """
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        CheckConstraint("delivered_quantity >= 0", name="ck_items_delivered_non_negative"),
        CheckConstraint("delivered_quantity <= quantity", name="ck_items_delivered_le_quantity"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tables_id = Column(Uuid, ForeignKey("tables.id"), nullable=False, index=True)
    menu_id = Column(Uuid, ForeignKey("menu.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    delivered_quantity = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # =========================================================================
    # AUDIT (reserved, not written by the item store)
    # =========================================================================
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String(100), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<Item {self.id} - {self.delivered_quantity}/{self.quantity}>"
