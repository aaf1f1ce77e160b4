from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.database import get_db, get_read_db
from reliefdb.security import get_actor_user_id, require_actor_user_id

from . import repository, schemas, services

router = APIRouter(prefix="", tags=["distributions"])


def _raise_http(exc: errors.ReliefError) -> None:
    raise HTTPException(status_code=errors.http_status_for(exc), detail=exc.message) from exc


@router.post(
    "/distributions",
    response_model=schemas.DistributionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_distribution(
    payload: schemas.DistributionCreate,
    db: Session = Depends(get_db),
    actor_user_id: int = Depends(require_actor_user_id),
):
    try:
        return services.create_distribution(
            db,
            beneficiary_id=payload.beneficiary_id,
            calamity_id=payload.calamity_id,
            distributed_by_user_id=actor_user_id,
            notes=payload.notes,
            items=payload.items,
            distribution_date=payload.distribution_date,
        )
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.post(
    "/distributions/batch",
    response_model=schemas.BatchDistributionResult,
    status_code=status.HTTP_201_CREATED,
)
def create_batch_distributions(
    payload: schemas.BatchDistributionCreate,
    db: Session = Depends(get_db),
    actor_user_id: int = Depends(require_actor_user_id),
):
    try:
        return services.create_batch_distributions(
            db,
            beneficiary_ids=payload.beneficiary_ids,
            calamity_id=payload.calamity_id,
            distributed_by_user_id=actor_user_id,
            notes=payload.notes,
            items=payload.items,
        )
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.post(
    "/distributions/{distribution_id}/void",
    response_model=List[schemas.DistributionItemRead],
)
def void_distribution(
    distribution_id: int,
    db: Session = Depends(get_db),
    actor_user_id: Optional[int] = Depends(get_actor_user_id),
):
    try:
        return services.void_distribution(db, distribution_id=distribution_id, actor_user_id=actor_user_id)
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.get("/distributions", response_model=List[schemas.DistributionRead])
def list_distributions(db: Session = Depends(get_read_db)):
    return repository.list_distributions(db)


@router.get("/distributions/{distribution_id}", response_model=schemas.DistributionRead)
def get_distribution(distribution_id: int, db: Session = Depends(get_read_db)):
    try:
        return repository.get_distribution(db, distribution_id)
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.get(
    "/beneficiaries/{beneficiary_id}/distributions",
    response_model=List[schemas.DistributionRead],
)
def list_beneficiary_distributions(beneficiary_id: int, db: Session = Depends(get_read_db)):
    return repository.list_distributions_for_beneficiary(db, beneficiary_id)


@router.get(
    "/beneficiaries/{beneficiary_id}/distribution-stats",
    response_model=schemas.DistributionStats,
)
def get_distribution_stats(beneficiary_id: int, db: Session = Depends(get_read_db)):
    return repository.get_distribution_stats(db, beneficiary_id)
