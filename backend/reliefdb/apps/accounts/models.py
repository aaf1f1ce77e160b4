from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum as SAEnum, Integer, String

from reliefdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRole(str, enum.Enum):
    ADMIN = "Admin"
    STAFF = "Staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(
        SAEnum(AccountRole, name="account_role_enum", native_enum=False),
        nullable=False,
        default=AccountRole.STAFF,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def display_name(self) -> str:
        return (self.full_name or "").strip() or self.username
