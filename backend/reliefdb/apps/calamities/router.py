from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from reliefdb import errors
from reliefdb.database import get_read_db

from . import schemas, services

router = APIRouter(prefix="/calamities", tags=["calamities"])


@router.get("/{calamity_id}", response_model=schemas.CalamityRead)
def get_calamity(calamity_id: int, db: Session = Depends(get_read_db)):
    try:
        return services.get_calamity(db, calamity_id)
    except errors.NotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc


@router.get("/{calamity_id}/kit", response_model=List[schemas.CalamityKitLineRead])
def get_calamity_kit(calamity_id: int, db: Session = Depends(get_read_db)):
    try:
        return services.get_calamity(db, calamity_id).kit
    except errors.NotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
