"""
Read side for distributions: headers joined with beneficiary, actor and
calamity names, line items joined with inventory display fields, and
per-beneficiary aggregates. Nothing here writes except the explicit
insert/delete helpers used by the distribution services.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.apps.accounts import models as account_models
from reliefdb.apps.beneficiaries import models as beneficiary_models
from reliefdb.apps.calamities import models as calamity_models
from reliefdb.apps.inventory import models as inventory_models

from . import models, schemas


# ---------------------------------------------------------------------------
# Writes (used inside the distribution unit of work)
# ---------------------------------------------------------------------------


def insert_line_items(
    db: Session,
    *,
    distribution_id: int,
    items: Sequence[schemas.DistributionLineCreate],
) -> None:
    if not items:
        return
    db.add_all(
        [
            models.DistributionLineItem(
                distribution_id=distribution_id,
                inventory_item_id=item.inventory_item_id,
                quantity=item.quantity,
            )
            for item in items
        ]
    )
    db.flush()


def delete_distribution(db: Session, distribution_id: int) -> None:
    """Delete line items, then the header."""
    db.execute(
        sa.delete(models.DistributionLineItem).where(
            models.DistributionLineItem.distribution_id == distribution_id
        )
    )
    db.execute(sa.delete(models.Distribution).where(models.Distribution.id == distribution_id))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_line_items(db: Session, distribution_id: int) -> List[schemas.DistributionItemRead]:
    return _line_items_by_distribution(db, [distribution_id]).get(distribution_id, [])


def _line_items_by_distribution(
    db: Session,
    distribution_ids: Iterable[int],
) -> Dict[int, List[schemas.DistributionItemRead]]:
    ids = list(distribution_ids)
    if not ids:
        return {}
    rows = db.execute(
        sa.select(
            models.DistributionLineItem,
            inventory_models.InventoryItem.name,
            inventory_models.InventoryItem.unit,
        )
        .outerjoin(
            inventory_models.InventoryItem,
            models.DistributionLineItem.inventory_item_id == inventory_models.InventoryItem.id,
        )
        .where(models.DistributionLineItem.distribution_id.in_(ids))
        .order_by(models.DistributionLineItem.distribution_id, models.DistributionLineItem.id)
    ).all()

    grouped: Dict[int, List[schemas.DistributionItemRead]] = defaultdict(list)
    for line, item_name, unit in rows:
        grouped[line.distribution_id].append(
            schemas.DistributionItemRead(
                id=line.id,
                distribution_id=line.distribution_id,
                inventory_item_id=line.inventory_item_id,
                item_name=item_name,
                unit=unit,
                quantity=line.quantity,
            )
        )
    return grouped


def _header_query():
    Beneficiary = beneficiary_models.Beneficiary
    User = account_models.User
    Calamity = calamity_models.Calamity
    return (
        sa.select(
            models.Distribution,
            Beneficiary.beneficiary_code,
            Beneficiary.full_name,
            User.username,
            User.full_name,
            Calamity.name,
        )
        .outerjoin(Beneficiary, models.Distribution.beneficiary_id == Beneficiary.id)
        .outerjoin(User, models.Distribution.distributed_by == User.id)
        .outerjoin(Calamity, models.Distribution.calamity_id == Calamity.id)
        .order_by(models.Distribution.distribution_date.desc(), models.Distribution.id.desc())
    )


def _read_distributions(db: Session, stmt) -> List[schemas.DistributionRead]:
    rows = db.execute(stmt).all()
    items = _line_items_by_distribution(db, [row[0].id for row in rows])
    out: List[schemas.DistributionRead] = []
    for dist, code, beneficiary_name, username, user_full_name, calamity_name in rows:
        out.append(
            schemas.DistributionRead(
                id=dist.id,
                beneficiary_id=dist.beneficiary_id,
                beneficiary_code=code,
                beneficiary_name=beneficiary_name,
                calamity_id=dist.calamity_id,
                calamity_name=calamity_name,
                distribution_date=dist.distribution_date,
                distributed_by=dist.distributed_by,
                distributed_by_name=(user_full_name or "").strip() or username,
                notes=dist.notes,
                created_at=dist.created_at,
                items=items.get(dist.id, []),
            )
        )
    return out


def find_distribution(db: Session, distribution_id: int) -> Optional[schemas.DistributionRead]:
    found = _read_distributions(db, _header_query().where(models.Distribution.id == distribution_id))
    return found[0] if found else None


def get_distribution(db: Session, distribution_id: int) -> schemas.DistributionRead:
    distribution = find_distribution(db, distribution_id)
    if distribution is None:
        raise errors.NotFound(f"Distribution not found: {distribution_id}")
    return distribution


def list_distributions(db: Session) -> List[schemas.DistributionRead]:
    return _read_distributions(db, _header_query())


def list_distributions_for_beneficiary(db: Session, beneficiary_id: int) -> List[schemas.DistributionRead]:
    return _read_distributions(
        db,
        _header_query().where(models.Distribution.beneficiary_id == beneficiary_id),
    )


def get_distribution_stats(db: Session, beneficiary_id: int) -> schemas.DistributionStats:
    count, last_date = db.execute(
        sa.select(
            sa.func.count(models.Distribution.id),
            sa.func.max(models.Distribution.distribution_date),
        ).where(models.Distribution.beneficiary_id == beneficiary_id)
    ).one()
    total_items = db.execute(
        sa.select(sa.func.coalesce(sa.func.sum(models.DistributionLineItem.quantity), 0))
        .join(models.Distribution, models.DistributionLineItem.distribution_id == models.Distribution.id)
        .where(models.Distribution.beneficiary_id == beneficiary_id)
    ).scalar_one()
    return schemas.DistributionStats(
        beneficiary_id=beneficiary_id,
        distribution_count=int(count or 0),
        last_distribution_date=last_date,
        total_items_received=int(total_items or 0),
    )
