from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.apps.accounts import services as account_services
from reliefdb.apps.events import broker as events
from reliefdb.database import transaction

from . import models, schemas


# ---------------------------------------------------------------------------
# Inventory store
# ---------------------------------------------------------------------------


def get_item(db: Session, inventory_item_id: int) -> schemas.InventoryItemRead:
    item = db.query(models.InventoryItem).filter(models.InventoryItem.id == inventory_item_id).first()
    if not item:
        raise errors.NotFound(f"Inventory item not found: {inventory_item_id}")
    return schemas.InventoryItemRead.model_validate(item)


def list_items(db: Session, *, category: Optional[str] = None) -> List[schemas.InventoryItemRead]:
    query = db.query(models.InventoryItem)
    if category:
        query = query.filter(models.InventoryItem.category == category)
    return [
        schemas.InventoryItemRead.model_validate(item)
        for item in query.order_by(models.InventoryItem.name).all()
    ]


def list_low_stock_items(db: Session) -> List[schemas.InventoryItemRead]:
    items = (
        db.query(models.InventoryItem)
        .filter(models.InventoryItem.quantity <= models.InventoryItem.low_stock_threshold)
        .order_by(models.InventoryItem.quantity.asc(), models.InventoryItem.name)
        .all()
    )
    return [schemas.InventoryItemRead.model_validate(item) for item in items]


def missing_item_ids(db: Session, inventory_item_ids: Iterable[int]) -> List[int]:
    """Return the ids from `inventory_item_ids` that have no inventory row, sorted."""
    wanted = set(inventory_item_ids)
    if not wanted:
        return []
    found = set(
        db.execute(
            sa.select(models.InventoryItem.id).where(models.InventoryItem.id.in_(wanted))
        ).scalars()
    )
    return sorted(wanted - found)


def validate_actor(db: Session, actor_user_id: Optional[int]) -> None:
    if actor_user_id is not None and not account_services.user_exists(db, actor_user_id):
        raise errors.ValidationError(f"User does not exist: {actor_user_id}")


def adjust_quantity(db: Session, *, inventory_item_id: int, delta: int) -> schemas.QuantityAdjustment:
    """
    Apply `delta` to the persisted quantity in a single UPDATE.

    The UPDATE holds the row lock until the caller's transaction ends, so the
    value read back is exactly what this change produced. Negative results are
    allowed; stock sufficiency is the caller's concern.
    """
    result = db.execute(
        sa.update(models.InventoryItem)
        .where(models.InventoryItem.id == inventory_item_id)
        .values(
            quantity=models.InventoryItem.quantity + delta,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise errors.NotFound(f"Inventory item not found: {inventory_item_id}")
    quantity_after = db.execute(
        sa.select(models.InventoryItem.quantity).where(models.InventoryItem.id == inventory_item_id)
    ).scalar_one()
    return schemas.QuantityAdjustment(
        inventory_item_id=inventory_item_id,
        quantity_before=quantity_after - delta,
        quantity_after=quantity_after,
    )


# ---------------------------------------------------------------------------
# Ledger writer
# ---------------------------------------------------------------------------


def append_transaction(db: Session, entry: schemas.InventoryTransactionCreate) -> int:
    """
    Append one ledger row and return its id. Before/after values are stored
    as given; they must come from the `adjust_quantity` call that produced
    the change.
    """
    if entry.quantity_after != entry.quantity_before + entry.quantity_change:
        raise errors.ValidationError(
            "Ledger entry is inconsistent: "
            f"{entry.quantity_before} + {entry.quantity_change} != {entry.quantity_after}"
        )
    row = models.InventoryTransaction(
        inventory_item_id=entry.inventory_item_id,
        user_id=entry.user_id,
        transaction_type=entry.transaction_type,
        quantity_change=entry.quantity_change,
        quantity_before=entry.quantity_before,
        quantity_after=entry.quantity_after,
        notes=entry.notes,
        reference_id=entry.reference_id,
        reference_type=entry.reference_type,
        created_at=datetime.now(timezone.utc),
    )
    db.add(row)
    db.flush()
    return row.id


def record_change(
    db: Session,
    *,
    inventory_item_id: int,
    delta: int,
    transaction_type: models.InventoryTransactionTypeEnum,
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
) -> int:
    """Adjust stock and append the matching ledger entry, in that order."""
    adjustment = adjust_quantity(db, inventory_item_id=inventory_item_id, delta=delta)
    return append_transaction(
        db,
        schemas.InventoryTransactionCreate(
            inventory_item_id=inventory_item_id,
            transaction_type=transaction_type,
            quantity_change=delta,
            quantity_before=adjustment.quantity_before,
            quantity_after=adjustment.quantity_after,
            user_id=user_id,
            notes=notes,
            reference_id=reference_id,
            reference_type=reference_type,
        ),
    )


def _transaction_read(entry: models.InventoryTransaction) -> schemas.InventoryTransactionRead:
    return schemas.InventoryTransactionRead(
        id=entry.id,
        inventory_item_id=entry.inventory_item_id,
        item_name=entry.inventory_item.name if entry.inventory_item else None,
        user_id=entry.user_id,
        user_name=entry.user.display_name if entry.user else None,
        transaction_type=entry.transaction_type,
        quantity_change=entry.quantity_change,
        quantity_before=entry.quantity_before,
        quantity_after=entry.quantity_after,
        notes=entry.notes,
        reference_id=entry.reference_id,
        reference_type=entry.reference_type,
        created_at=entry.created_at,
    )


def get_transaction(db: Session, transaction_id: int) -> schemas.InventoryTransactionRead:
    entry = (
        db.query(models.InventoryTransaction)
        .filter(models.InventoryTransaction.id == transaction_id)
        .first()
    )
    if not entry:
        raise errors.NotFound(f"Inventory transaction not found: {transaction_id}")
    return _transaction_read(entry)


def list_transactions(
    db: Session,
    *,
    inventory_item_id: Optional[int] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[schemas.InventoryTransactionRead]:
    query = db.query(models.InventoryTransaction)
    if inventory_item_id is not None:
        query = query.filter(models.InventoryTransaction.inventory_item_id == inventory_item_id)
    query = query.order_by(
        models.InventoryTransaction.created_at.desc(),
        models.InventoryTransaction.id.desc(),
    ).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return [_transaction_read(entry) for entry in query.all()]


# ---------------------------------------------------------------------------
# Stock maintenance
# ---------------------------------------------------------------------------


def restock_item(
    db: Session,
    *,
    inventory_item_id: int,
    quantity: int,
    actor_user_id: Optional[int],
    notes: Optional[str] = None,
) -> schemas.InventoryTransactionRead:
    if quantity <= 0:
        raise errors.ValidationError("Restock quantity must be greater than 0")

    with transaction(db):
        validate_actor(db, actor_user_id)
        entry_id = record_change(
            db,
            inventory_item_id=inventory_item_id,
            delta=quantity,
            transaction_type=models.InventoryTransactionTypeEnum.RESTOCK,
            user_id=actor_user_id,
            notes=notes,
        )

    entry = get_transaction(db, entry_id)
    events.emit(
        entity_type="Inventory",
        entity_id=str(inventory_item_id),
        action="restocked",
        actor_user_id=actor_user_id,
        metadata={"quantityChange": quantity, "quantityAfter": entry.quantity_after},
    )
    return entry


def set_item_quantity(
    db: Session,
    *,
    inventory_item_id: int,
    quantity: int,
    actor_user_id: Optional[int],
    notes: Optional[str] = None,
) -> Optional[schemas.InventoryTransactionRead]:
    """
    Set an absolute quantity. Returns the ledger entry, or None when the
    quantity was already at the target and nothing was recorded.
    """
    if quantity < 0:
        raise errors.ValidationError("Quantity cannot be negative")

    with transaction(db):
        validate_actor(db, actor_user_id)
        current = db.execute(
            sa.select(models.InventoryItem.quantity)
            .where(models.InventoryItem.id == inventory_item_id)
            .with_for_update()
        ).scalar_one_or_none()
        if current is None:
            raise errors.NotFound(f"Inventory item not found: {inventory_item_id}")
        delta = quantity - current
        if delta == 0:
            return None
        entry_id = record_change(
            db,
            inventory_item_id=inventory_item_id,
            delta=delta,
            transaction_type=models.InventoryTransactionTypeEnum.SET_QUANTITY,
            user_id=actor_user_id,
            notes=notes,
        )

    entry = get_transaction(db, entry_id)
    events.emit(
        entity_type="Inventory",
        entity_id=str(inventory_item_id),
        action="quantity_set",
        actor_user_id=actor_user_id,
        metadata={"quantityChange": delta, "quantityAfter": entry.quantity_after},
    )
    return entry
