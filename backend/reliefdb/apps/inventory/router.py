from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.database import get_db, get_read_db
from reliefdb.security import get_actor_user_id

from . import schemas, services

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _raise_http(exc: errors.ReliefError) -> None:
    raise HTTPException(status_code=errors.http_status_for(exc), detail=exc.message) from exc


@router.get("/items", response_model=List[schemas.InventoryItemRead])
def list_items(
    category: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return services.list_items(db, category=category)


@router.get("/items/{inventory_item_id}", response_model=schemas.InventoryItemRead)
def get_item(inventory_item_id: int, db: Session = Depends(get_read_db)):
    try:
        return services.get_item(db, inventory_item_id)
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.get("/low-stock", response_model=List[schemas.InventoryItemRead])
def list_low_stock_items(db: Session = Depends(get_read_db)):
    return services.list_low_stock_items(db)


@router.post(
    "/items/{inventory_item_id}/restock",
    response_model=schemas.InventoryTransactionRead,
    status_code=status.HTTP_201_CREATED,
)
def restock_item(
    inventory_item_id: int,
    payload: schemas.InventoryRestockRequest,
    db: Session = Depends(get_db),
    actor_user_id: Optional[int] = Depends(get_actor_user_id),
):
    try:
        return services.restock_item(
            db,
            inventory_item_id=inventory_item_id,
            quantity=payload.quantity,
            actor_user_id=actor_user_id,
            notes=payload.notes,
        )
    except errors.ReliefError as exc:
        _raise_http(exc)


@router.put(
    "/items/{inventory_item_id}/quantity",
    response_model=Optional[schemas.InventoryTransactionRead],
    responses={204: {"description": "Quantity already at target; nothing recorded."}},
)
def set_item_quantity(
    inventory_item_id: int,
    payload: schemas.InventorySetQuantityRequest,
    db: Session = Depends(get_db),
    actor_user_id: Optional[int] = Depends(get_actor_user_id),
):
    try:
        entry = services.set_item_quantity(
            db,
            inventory_item_id=inventory_item_id,
            quantity=payload.quantity,
            actor_user_id=actor_user_id,
            notes=payload.notes,
        )
    except errors.ReliefError as exc:
        _raise_http(exc)
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return entry


@router.get("/transactions", response_model=List[schemas.InventoryTransactionRead])
def list_transactions(
    inventory_id: Optional[int] = Query(None, description="Restrict to one inventory item"),
    skip: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_read_db),
):
    return services.list_transactions(db, inventory_item_id=inventory_id, skip=skip, limit=limit)
