from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)

from reliefdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Distribution(Base):
    __tablename__ = "distributions"
    __table_args__ = (
        Index("ix_distributions_beneficiary_date", "beneficiary_id", "distribution_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    beneficiary_id = Column(Integer, ForeignKey("beneficiaries.id"), nullable=False, index=True)
    calamity_id = Column(Integer, ForeignKey("calamities.id"), nullable=True, index=True)
    distribution_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    distributed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class DistributionLineItem(Base):
    __tablename__ = "distribution_line_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_distribution_line_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    distribution_id = Column(
        Integer,
        ForeignKey("distributions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id = Column(Integer, ForeignKey("inventory.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
