from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from reliefdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalamityStatusEnum(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Calamity(Base):
    __tablename__ = "calamities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    status = Column(
        SAEnum(CalamityStatusEnum, name="calamity_status_enum", native_enum=False),
        nullable=False,
        default=CalamityStatusEnum.ACTIVE,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "CalamityItem",
        back_populates="calamity",
        cascade="all, delete-orphan",
        order_by="CalamityItem.id",
        lazy="selectin",
    )


class CalamityItem(Base):
    __tablename__ = "calamity_items"
    __table_args__ = (
        UniqueConstraint("calamity_id", "inventory_item_id", name="uq_calamity_item"),
        CheckConstraint("standard_quantity > 0", name="ck_calamity_item_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    calamity_id = Column(Integer, ForeignKey("calamities.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory.id"), nullable=False, index=True)
    standard_quantity = Column(Integer, nullable=False)

    calamity = relationship("Calamity", back_populates="items")
    inventory_item = relationship("InventoryItem", lazy="joined")
