from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from reliefdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Beneficiary(Base):
    __tablename__ = "beneficiaries"

    id = Column(Integer, primary_key=True, index=True)
    # Human-facing registration code, e.g. "BEN-2024-0001".
    beneficiary_code = Column(String(32), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    barangay = Column(String(128), nullable=True)
    family_size = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
