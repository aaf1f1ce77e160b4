from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.apps.beneficiaries import services as beneficiary_services
from reliefdb.apps.calamities import services as calamity_services
from reliefdb.apps.events import broker as events
from reliefdb.apps.inventory import models as inventory_models
from reliefdb.apps.inventory import services as inventory_services
from reliefdb.database import transaction

from . import models, repository, schemas

logger = logging.getLogger(__name__)

REFERENCE_TYPE = "Distribution"


def _validate_lines(items: Sequence[schemas.DistributionLineCreate]) -> None:
    for index, item in enumerate(items):
        if item.quantity < 1:
            raise errors.ValidationError(
                f"Line {index + 1}: quantity must be at least 1 (got {item.quantity})."
            )


def _validate_references(
    db: Session,
    *,
    beneficiary_id: int,
    calamity_id: Optional[int],
    distributed_by_user_id: int,
    items: Sequence[schemas.DistributionLineCreate],
) -> None:
    if not beneficiary_services.beneficiary_exists(db, beneficiary_id):
        raise errors.ValidationError(f"Beneficiary does not exist: {beneficiary_id}")
    if calamity_id is not None and not calamity_services.calamity_exists(db, calamity_id):
        raise errors.ValidationError(f"Calamity does not exist: {calamity_id}")
    inventory_services.validate_actor(db, distributed_by_user_id)
    missing = inventory_services.missing_item_ids(db, (item.inventory_item_id for item in items))
    if missing:
        raise errors.ValidationError(
            "Inventory items do not exist: " + ", ".join(str(item_id) for item_id in missing)
        )


def build_kit_lines(db: Session, calamity_id: int) -> List[schemas.DistributionLineCreate]:
    """Pre-fill line items from a calamity's standard kit."""
    calamity = calamity_services.get_calamity(db, calamity_id)
    return [
        schemas.DistributionLineCreate(
            inventory_item_id=line.inventory_item_id,
            quantity=line.standard_quantity,
        )
        for line in calamity.kit
    ]


def create_distribution(
    db: Session,
    *,
    beneficiary_id: int,
    calamity_id: Optional[int],
    distributed_by_user_id: int,
    notes: Optional[str] = None,
    items: Sequence[schemas.DistributionLineCreate] = (),
    distribution_date: Optional[datetime] = None,
) -> schemas.DistributionRead:
    """
    Record a distribution and take its items out of stock.

    Header, line items, stock decrements and ledger entries commit together
    or not at all. Stock may go negative: over-distribution is recorded as a
    deficit rather than rejected. Not safe to retry blindly after a failure
    without first checking that nothing was recorded.
    """
    items = list(items)
    _validate_lines(items)

    with transaction(db):
        _validate_references(
            db,
            beneficiary_id=beneficiary_id,
            calamity_id=calamity_id,
            distributed_by_user_id=distributed_by_user_id,
            items=items,
        )

        now = datetime.now(timezone.utc)
        header = models.Distribution(
            beneficiary_id=beneficiary_id,
            calamity_id=calamity_id,
            distribution_date=distribution_date or now,
            distributed_by=distributed_by_user_id,
            notes=notes,
            created_at=now,
        )
        db.add(header)
        db.flush()
        distribution_id = header.id

        repository.insert_line_items(db, distribution_id=distribution_id, items=items)

        for item in items:
            inventory_services.record_change(
                db,
                inventory_item_id=item.inventory_item_id,
                delta=-item.quantity,
                transaction_type=inventory_models.InventoryTransactionTypeEnum.DISTRIBUTION,
                user_id=distributed_by_user_id,
                notes=f"Distribution to beneficiary ID: {beneficiary_id}",
                reference_id=distribution_id,
                reference_type=REFERENCE_TYPE,
            )

    distribution = repository.get_distribution(db, distribution_id)
    logger.info(
        "Distribution recorded",
        extra={
            "distribution_id": distribution_id,
            "beneficiary_id": beneficiary_id,
            "line_count": len(items),
        },
    )
    events.emit(
        entity_type=REFERENCE_TYPE,
        entity_id=str(distribution_id),
        action="created",
        actor_user_id=distributed_by_user_id,
        metadata={
            "beneficiaryId": beneficiary_id,
            "calamityId": calamity_id,
            "lines": [
                {"inventoryItemId": item.inventory_item_id, "quantity": item.quantity}
                for item in items
            ],
        },
    )
    return distribution


def void_distribution(
    db: Session,
    *,
    distribution_id: int,
    actor_user_id: Optional[int] = None,
) -> List[schemas.DistributionItemRead]:
    """
    Reverse a distribution: return its items to stock, write compensating
    ledger entries and delete the distribution. Returns the restored lines.

    The distribution row itself is gone afterwards; the ledger keeps both
    the original and the reversing entries.
    """
    with transaction(db):
        header = (
            db.query(models.Distribution)
            .filter(models.Distribution.id == distribution_id)
            .with_for_update()
            .first()
        )
        if header is None:
            raise errors.NotFound(f"Distribution not found: {distribution_id}")
        inventory_services.validate_actor(db, actor_user_id)

        restored = repository.get_line_items(db, distribution_id)
        for item in restored:
            inventory_services.record_change(
                db,
                inventory_item_id=item.inventory_item_id,
                delta=item.quantity,
                transaction_type=inventory_models.InventoryTransactionTypeEnum.VOID_DISTRIBUTION,
                user_id=actor_user_id,
                notes=f"Distribution voided - ID: {distribution_id}",
                reference_id=distribution_id,
                reference_type=REFERENCE_TYPE,
            )

        repository.delete_distribution(db, distribution_id)

    logger.info(
        "Distribution voided",
        extra={"distribution_id": distribution_id, "line_count": len(restored)},
    )
    events.emit(
        entity_type=REFERENCE_TYPE,
        entity_id=str(distribution_id),
        action="voided",
        actor_user_id=actor_user_id,
        metadata={
            "lines": [
                {"inventoryItemId": item.inventory_item_id, "quantity": item.quantity}
                for item in restored
            ],
        },
    )
    return restored


def create_batch_distributions(
    db: Session,
    *,
    beneficiary_ids: Sequence[int],
    calamity_id: Optional[int],
    distributed_by_user_id: int,
    notes: Optional[str] = None,
    items: Optional[Sequence[schemas.DistributionLineCreate]] = None,
) -> schemas.BatchDistributionResult:
    """
    Create one distribution per beneficiary with the same lines.

    Each beneficiary is its own unit of work: a failure is reported for that
    beneficiary and the others still go through.
    """
    if items is None:
        if calamity_id is None:
            raise errors.ValidationError("Either items or a calamity with a standard kit is required.")
        items = build_kit_lines(db, calamity_id)
    items = list(items)
    _validate_lines(items)

    result = schemas.BatchDistributionResult()
    for beneficiary_id in beneficiary_ids:
        try:
            result.created.append(
                create_distribution(
                    db,
                    beneficiary_id=beneficiary_id,
                    calamity_id=calamity_id,
                    distributed_by_user_id=distributed_by_user_id,
                    notes=notes,
                    items=items,
                )
            )
        except errors.ReliefError as exc:
            logger.warning(
                "Batch distribution skipped beneficiary",
                extra={"beneficiary_id": beneficiary_id, "error": exc.message},
            )
            result.failures.append(
                schemas.BatchDistributionFailure(beneficiary_id=beneficiary_id, error=exc.message)
            )
    return result
