"""
Batch Statement Builder

Builds the multi-row INSERT and the multi-row conditional UPDATE used by
the item store. Placeholders are numbered across the whole statement
(`:p1`, `:p2`, ...) and `BuiltQuery.params[i]` is the value for
`:p{i + 1}`, so all index arithmetic lives here and nowhere else.

INSERT, row r of N (five slots per row):

    (:p{5r+1}, :p{5r+2}, :p{5r+3}, :p{5r+4}, :p{5r+5})
      id        tables_id menu_id   quantity  delivered_quantity (0)

UPDATE, item i of N (three slots per item):

    :p{3i+1} id          referenced in both CASE branches and in the IN list
    :p{3i+2} quantity    NULL keeps the stored value
    :p{3i+3} delivered   NULL adds nothing
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple

from sqlalchemy import Integer, Uuid, bindparam, text
from sqlalchemy.sql.elements import TextClause

from order_tracker.services.items.base import ItemUpdate, NewItem, PartialItem

INSERT_COLUMNS = ("id", "tables_id", "menu_id", "quantity", "delivered_quantity")
UPDATE_SLOTS = 3


def placeholder(position: int) -> str:
    """Bind name for 1-based `position`."""
    return f":p{position}"


@dataclass
class BuiltQuery:
    """Statement template plus its flattened parameter list."""
    sql: str
    params: List[Any] = field(default_factory=list)

    def bind_values(self) -> dict:
        return {f"p{i}": value for i, value in enumerate(self.params, start=1)}

    def to_statement(self) -> TextClause:
        """
        Typed `text()` construct ready for `session.execute`.

        Ids are bound as UUIDs and every other slot as an integer, which
        also gives NULL quantity slots a concrete type on PostgreSQL.
        """
        binds = [
            bindparam(
                f"p{i}",
                value,
                type_=Uuid() if isinstance(value, uuid.UUID) else Integer(),
            )
            for i, value in enumerate(self.params, start=1)
        ]
        return text(self.sql).bindparams(*binds)


def build_insert_items(
    tables_id: uuid.UUID,
    new_items: Sequence[NewItem],
) -> Tuple[BuiltQuery, List[PartialItem]]:
    """
    Build one INSERT writing every requested line-item.

    Each row gets a fresh uuid4. The returned PartialItems mirror the rows
    in the same order, so callers never need to read them back.

    The caller rejects empty and oversized batches; an empty list here
    would produce an INSERT without a VALUES group.
    """
    groups = []
    params: List[Any] = []
    created: List[PartialItem] = []

    for row, new_item in enumerate(new_items):
        start = row * len(INSERT_COLUMNS) + 1
        groups.append(
            "(" + ", ".join(placeholder(start + offset) for offset in range(len(INSERT_COLUMNS))) + ")"
        )

        item = PartialItem(
            id=uuid.uuid4(),
            tables_id=tables_id,
            menu_id=new_item.menu_id,
            quantity=new_item.quantity,
            delivered_quantity=0,
        )
        params.extend([item.id, item.tables_id, item.menu_id, item.quantity, item.delivered_quantity])
        created.append(item)

    sql = (
        f"INSERT INTO items ({', '.join(INSERT_COLUMNS)}) VALUES "
        + ", ".join(groups)
    )
    return BuiltQuery(sql=sql, params=params), created


def build_update_items(updates: Sequence[ItemUpdate]) -> BuiltQuery:
    """
    Build one UPDATE covering every item of the batch.

    Rows outside the IN list are never touched; ids in the list that do
    not exist simply match nothing.
    """
    quantity_cases = []
    delivered_cases = []
    ids = []
    params: List[Any] = []

    for i, update in enumerate(updates):
        id_ph = placeholder(i * UPDATE_SLOTS + 1)
        quantity_ph = placeholder(i * UPDATE_SLOTS + 2)
        delivered_ph = placeholder(i * UPDATE_SLOTS + 3)

        quantity_cases.append(f"WHEN id = {id_ph} THEN COALESCE({quantity_ph}, quantity)")
        delivered_cases.append(
            f"WHEN id = {id_ph} THEN delivered_quantity + COALESCE({delivered_ph}, 0)"
        )
        ids.append(id_ph)
        params.extend([update.id, update.quantity, update.delivered_quantity])

    sql = (
        "UPDATE items SET "
        f"quantity = CASE {' '.join(quantity_cases)} ELSE quantity END, "
        f"delivered_quantity = CASE {' '.join(delivered_cases)} ELSE delivered_quantity END "
        f"WHERE id IN ({', '.join(ids)})"
    )
    return BuiltQuery(sql=sql, params=params)
