from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from .broker import broker

router = APIRouter(prefix="/events", tags=["events"])


class ActivityEventRead(BaseModel):
    id: str
    type: str
    entityType: str
    entityId: str
    action: str
    timestamp: str
    actor: Optional[dict] = None
    metadata: dict = {}


class ActivityHistoryResponse(BaseModel):
    items: list[ActivityEventRead]
    reset_required: bool = False


@router.get("/history", response_model=ActivityHistoryResponse)
def event_history(since: Optional[str] = Query(None, description="Last event id seen by the client")):
    events, reset_required = broker.replay_since(last_event_id=since)
    return ActivityHistoryResponse(
        items=[ActivityEventRead(**event.__dict__) for event in events],
        reset_required=reset_required,
    )
