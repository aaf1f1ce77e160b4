from __future__ import annotations

from sqlalchemy.orm import Session

from . import models


def beneficiary_exists(db: Session, beneficiary_id: int) -> bool:
    return (
        db.query(models.Beneficiary.id)
        .filter(models.Beneficiary.id == beneficiary_id)
        .first()
        is not None
    )
