from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventEnvelope:
    id: str
    type: str
    entityType: str
    entityId: str
    action: str
    timestamp: str
    actor: Optional[Dict[str, Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)


class EventBroker:
    """Bounded in-process history of committed changes, replayable by event id."""

    def __init__(self, replay_size: int = 2000) -> None:
        self._history: Deque[EventEnvelope] = deque(maxlen=replay_size)
        self._lock = threading.Lock()

    def history(self) -> list[EventEnvelope]:
        with self._lock:
            return list(self._history)

    def clear(self) -> None:
        with self._lock:
            self._history.clear()

    def replay_since(self, *, last_event_id: Optional[str]) -> tuple[list[EventEnvelope], bool]:
        """
        Return events published after `last_event_id`.

        The flag is True when the id fell out of the buffer and the caller
        must resynchronise from storage.
        """
        history = self.history()
        if not last_event_id:
            return history, False
        ids = [event.id for event in history]
        if last_event_id not in ids:
            return [], True
        start_index = ids.index(last_event_id) + 1
        return history[start_index:], False

    def publish(self, event: EventEnvelope) -> None:
        with self._lock:
            self._history.append(event)


broker = EventBroker()


def publish_event(event: EventEnvelope) -> None:
    broker.publish(event)


def emit(
    *,
    entity_type: str,
    entity_id: str,
    action: str,
    actor_user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[EventEnvelope]:
    """
    Best-effort publish of a committed change.

    Called after commit, so a failure here is logged and swallowed: the data
    is already durable and observers can resynchronise from the ledger.
    """
    event = EventEnvelope(
        id=str(uuid.uuid4()),
        type=f"{entity_type}.{action}".lower(),
        entityType=entity_type,
        entityId=entity_id,
        action=action,
        timestamp=datetime.now(timezone.utc).isoformat(),
        actor={"userId": actor_user_id} if actor_user_id is not None else None,
        metadata=dict(metadata or {}),
    )
    try:
        publish_event(event)
    except Exception:
        logger.warning(
            "Failed to publish event",
            extra={"entity_type": entity_type, "entity_id": entity_id, "action": action},
        )
        return None
    logger.info(
        "Published %s",
        event.type,
        extra={"event_id": event.id, "entity_id": entity_id},
    )
    return event
