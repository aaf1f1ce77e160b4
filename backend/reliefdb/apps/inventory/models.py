from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from reliefdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Stored by member name (native_enum=False); API payloads carry the value.
class InventoryTransactionTypeEnum(str, enum.Enum):
    RESTOCK = "Restock"
    SET_QUANTITY = "SetQuantity"
    DISTRIBUTION = "Distribution"
    VOID_DISTRIBUTION = "VoidDistribution"


class InventoryItem(Base):
    """
    Current-state stock row. `quantity` is only ever changed through
    `services.adjust_quantity`; it may go negative on over-distribution.
    """

    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    category = Column(String(64), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(32), nullable=True)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold


class InventoryTransaction(Base):
    """
    Append-only ledger entry. Rows are inserted once and never updated or
    deleted; `quantity_after == quantity_before + quantity_change`.
    """

    __tablename__ = "inventory_transactions"
    __table_args__ = (
        Index("ix_inventory_transactions_item_time", "inventory_item_id", "created_at"),
        Index("ix_inventory_transactions_reference", "reference_type", "reference_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    transaction_type = Column(
        SAEnum(InventoryTransactionTypeEnum, name="inventory_transaction_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    quantity_change = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    reference_id = Column(Integer, nullable=True)
    reference_type = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    inventory_item = relationship("InventoryItem", lazy="joined")
    user = relationship("User", lazy="joined")
