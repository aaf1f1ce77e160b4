from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DistributionLineCreate(BaseModel):
    # Positivity is enforced by the distribution service so that API and
    # programmatic callers get the same error.
    inventory_item_id: int
    quantity: int

    class Config:
        frozen = True


class DistributionCreate(BaseModel):
    beneficiary_id: int
    calamity_id: Optional[int] = None
    notes: Optional[str] = None
    distribution_date: Optional[datetime] = None
    items: List[DistributionLineCreate] = Field(default_factory=list)


class BatchDistributionCreate(BaseModel):
    beneficiary_ids: List[int] = Field(..., min_length=1)
    calamity_id: Optional[int] = None
    notes: Optional[str] = None
    # When omitted, the calamity's standard kit is used.
    items: Optional[List[DistributionLineCreate]] = None


class DistributionItemRead(BaseModel):
    id: int
    distribution_id: int
    inventory_item_id: int
    item_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: int

    class Config:
        from_attributes = True
        frozen = True


class DistributionRead(BaseModel):
    id: int
    beneficiary_id: int
    beneficiary_code: Optional[str] = None
    beneficiary_name: Optional[str] = None
    calamity_id: Optional[int] = None
    calamity_name: Optional[str] = None
    distribution_date: datetime
    distributed_by: int
    distributed_by_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[DistributionItemRead] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)


class DistributionStats(BaseModel):
    beneficiary_id: int
    distribution_count: int = 0
    last_distribution_date: Optional[datetime] = None
    total_items_received: int = 0

    class Config:
        frozen = True


class BatchDistributionFailure(BaseModel):
    beneficiary_id: int
    error: str


class BatchDistributionResult(BaseModel):
    created: List[DistributionRead] = Field(default_factory=list)
    failures: List[BatchDistributionFailure] = Field(default_factory=list)
