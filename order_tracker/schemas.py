"""
Pydantic Schemas for Request/Response Validation

Bulk endpoints use an `{items: [...]}` envelope in both directions.

Version: 1.0.0
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from order_tracker.services.items import ItemUpdate, NewItem


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class NewItemRequest(BaseModel):
    """Single line of a bulk create."""
    quantity: int = Field(..., ge=0, examples=[2])
    menu_id: UUID

    def to_new_item(self) -> NewItem:
        return NewItem(quantity=self.quantity, menu_id=self.menu_id)


class BulkNewItemRequest(BaseModel):
    """Request schema for creating several items at once."""
    items: List[NewItemRequest]


class UpdateItemRequest(BaseModel):
    """Single line of a bulk update."""
    id: UUID
    quantity: Optional[int] = Field(None, ge=0, description="Replaces the stored quantity")
    delivered_quantity: Optional[int] = Field(
        None,
        ge=0,
        description="Added to the stored delivered quantity",
    )

    def to_item_update(self) -> ItemUpdate:
        return ItemUpdate(
            id=self.id,
            quantity=self.quantity,
            delivered_quantity=self.delivered_quantity,
        )


class BulkUpdateItemRequest(BaseModel):
    """Request schema for updating several items at once."""
    items: List[UpdateItemRequest]


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PartialItemResponse(BaseModel):
    """Line-item as created."""
    id: UUID
    tables_id: UUID
    menu_id: UUID
    quantity: int
    delivered_quantity: int

    class Config:
        from_attributes = True


class ItemResponse(PartialItemResponse):
    """Line-item read back with its dish's preparation time."""
    created_at: datetime
    prep_time: Optional[int]


class BulkNewItemResponse(BaseModel):
    """Response after creating items."""
    items: List[PartialItemResponse]


class SuccessResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
