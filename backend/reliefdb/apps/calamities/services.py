from __future__ import annotations

from sqlalchemy.orm import Session

from reliefdb import errors

from . import models, schemas


def calamity_exists(db: Session, calamity_id: int) -> bool:
    """Referential check only; inactive calamities still count."""
    return (
        db.query(models.Calamity.id)
        .filter(models.Calamity.id == calamity_id)
        .first()
        is not None
    )


def get_calamity(db: Session, calamity_id: int) -> schemas.CalamityRead:
    calamity = db.query(models.Calamity).filter(models.Calamity.id == calamity_id).first()
    if not calamity:
        raise errors.NotFound(f"Calamity not found: {calamity_id}")
    return schemas.CalamityRead(
        id=calamity.id,
        name=calamity.name,
        description=calamity.description,
        status=calamity.status,
        created_at=calamity.created_at,
        kit=[_kit_line(item) for item in calamity.items],
    )


def _kit_line(item: models.CalamityItem) -> schemas.CalamityKitLineRead:
    inventory_item = item.inventory_item
    return schemas.CalamityKitLineRead(
        inventory_item_id=item.inventory_item_id,
        item_name=inventory_item.name if inventory_item else None,
        unit=inventory_item.unit if inventory_item else None,
        standard_quantity=item.standard_quantity,
    )

