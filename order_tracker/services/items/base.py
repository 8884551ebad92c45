"""
Item Store Abstract Base Class

Defines the row types exchanged with the item store and the interface
every store implementation provides.

Row types:
    - PartialItem: what a batch create writes (and echoes back)
    - PartialItemReturn: a line-item read back together with the dish's
      preparation time
    - NewItem / ItemUpdate: transient batch requests
    - Pagination / FilterParams: remaining-items query options

Version: 1.0.0
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, Optional

# Hard cap on rows in one batch statement
MAX_ITEMS_LIMIT = 100

DEFAULT_PAGE_LIMIT = 10
DEFAULT_PAGE_OFFSET = 0


@dataclass
class NewItem:
    """One line of a batch create request."""
    quantity: int
    menu_id: uuid.UUID


@dataclass
class ItemUpdate:
    """
    One line of a batch update request.

    Attributes:
        id: Line-item to change
        quantity: New requested quantity; replaces the stored value
        delivered_quantity: Amount just delivered; added to the stored value
    """
    id: uuid.UUID
    quantity: Optional[int] = None
    delivered_quantity: Optional[int] = None


@dataclass
class PartialItem:
    """Line-item as written by a batch create."""
    id: uuid.UUID
    tables_id: uuid.UUID
    menu_id: uuid.UUID
    quantity: int
    delivered_quantity: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class PartialItemReturn:
    """Line-item joined with its dish's preparation time."""
    id: uuid.UUID
    tables_id: uuid.UUID
    menu_id: uuid.UUID
    quantity: int
    delivered_quantity: int
    created_at: datetime
    prep_time: Optional[int] = None

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - self.delivered_quantity

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class Pagination:
    limit: Optional[int] = None
    offset: Optional[int] = None

    def resolved(self) -> "Pagination":
        """Copy with defaults filled in for missing values."""
        return Pagination(
            limit=DEFAULT_PAGE_LIMIT if self.limit is None else self.limit,
            offset=DEFAULT_PAGE_OFFSET if self.offset is None else self.offset,
        )


@dataclass
class FilterParams:
    menu_id: Optional[uuid.UUID] = None


class BaseItemStore(ABC):
    """
    Abstract base class for item stores.

    Every operation accepts an optional `timeout` in seconds. When it
    elapses the in-flight statement is cancelled and
    OperationTimeoutError is raised.
    """

    @abstractmethod
    async def create_items(
        self,
        tables_id: uuid.UUID,
        new_items: List[NewItem],
        timeout: Optional[float] = None,
    ) -> List[PartialItem]:
        """
        Insert every requested line-item for a table in one statement.

        Args:
            tables_id: Owning table
            new_items: Requests to insert, at most MAX_ITEMS_LIMIT

        Returns:
            List[PartialItem]: Exactly the rows inserted, in request order,
            each with delivered_quantity = 0

        Raises:
            LimitExceededError: Too many items in the batch
            ValidationError: Negative quantity
            StoreError: Statement failed; nothing was inserted
        """
        pass

    @abstractmethod
    async def update_items(
        self,
        updates: List[ItemUpdate],
        timeout: Optional[float] = None,
    ) -> int:
        """
        Apply a batch of updates in one statement.

        Quantity replaces the stored value, delivered_quantity is added to
        it; missing values leave the column unchanged.

        Returns:
            int: Number of rows affected (ids that do not exist count as 0)
        """
        pass

    @abstractmethod
    async def list_remaining_items(
        self,
        tables_id: uuid.UUID,
        pagination: Optional[Pagination] = None,
        filters: Optional[FilterParams] = None,
        timeout: Optional[float] = None,
    ) -> List[PartialItemReturn]:
        """Page through a table's line-items that are not fully delivered."""
        pass

    @abstractmethod
    async def get_item(
        self,
        tables_id: uuid.UUID,
        item_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> PartialItemReturn:
        """Fetch one line-item of a table; raises NotFoundError."""
        pass

    @abstractmethod
    async def delete_item(
        self,
        tables_id: uuid.UUID,
        item_id: uuid.UUID,
        timeout: Optional[float] = None,
    ) -> bool:
        """Delete one line-item of a table; returns whether a row was removed."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the backing store.

        Returns:
            bool: True if the store answers a trivial query
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release pooled connections."""
        pass
