from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from . import models


class InventoryItemRead(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    quantity: int
    unit: Optional[str] = None
    low_stock_threshold: int
    is_low_stock: bool

    class Config:
        from_attributes = True
        frozen = True


class QuantityAdjustment(BaseModel):
    """Before/after pair returned by the atomic delta operation."""

    inventory_item_id: int
    quantity_before: int
    quantity_after: int

    class Config:
        frozen = True


class InventoryTransactionCreate(BaseModel):
    inventory_item_id: int
    transaction_type: models.InventoryTransactionTypeEnum
    quantity_change: int
    quantity_before: int
    quantity_after: int
    user_id: Optional[int] = None
    notes: Optional[str] = None
    reference_id: Optional[int] = None
    reference_type: Optional[str] = None

    class Config:
        frozen = True


class InventoryTransactionRead(BaseModel):
    id: int
    inventory_item_id: int
    item_name: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    transaction_type: models.InventoryTransactionTypeEnum
    quantity_change: int
    quantity_before: int
    quantity_after: int
    notes: Optional[str] = None
    reference_id: Optional[int] = None
    reference_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
        frozen = True


class InventoryRestockRequest(BaseModel):
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None


class InventorySetQuantityRequest(BaseModel):
    quantity: int = Field(..., ge=0)
    notes: Optional[str] = None
