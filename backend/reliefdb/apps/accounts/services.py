from __future__ import annotations

from sqlalchemy.orm import Session

from . import models


def user_exists(db: Session, user_id: int) -> bool:
    return db.query(models.User.id).filter(models.User.id == user_id).first() is not None
