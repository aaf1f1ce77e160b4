from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from . import models


class CalamityKitLineRead(BaseModel):
    inventory_item_id: int
    item_name: Optional[str] = None
    unit: Optional[str] = None
    standard_quantity: int

    class Config:
        from_attributes = True
        frozen = True


class CalamityRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    status: models.CalamityStatusEnum
    created_at: datetime
    kit: List[CalamityKitLineRead] = []

    class Config:
        from_attributes = True
        frozen = True
