"""
Event log access.

The event log is the only place commands write to. Rows are never updated or
deleted; every read model can be rebuilt by replaying them in id order.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from seiton.infrastructure.db.models import EventLog


class EventLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        account_id: int,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Add one event and flush it; the caller owns the commit.

        Args:
            payload: JSON-serializable dict (dates and decimals as strings)
            occurred_at: Defaults to now (UTC)
            idempotency_key: Set for commands that must happen at most once

        Returns:
            The new event id

        Raises:
            IntegrityError: the idempotency_key is already taken
        """
        event = EventLog(
            account_id=account_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at or datetime.now(timezone.utc),
            idempotency_key=idempotency_key,
        )
        self.db.add(event)
        self.db.flush()
        return event.id

    def _account_events(self, account_id: int, event_types: Optional[List[str]]):
        query = self.db.query(EventLog).filter(EventLog.account_id == account_id)
        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))
        return query

    def list_events_since(
        self,
        account_id: int,
        after_id: int = 0,
        limit: int = 200,
        event_types: Optional[List[str]] = None,
    ) -> List[EventLog]:
        """Up to `limit` events of the account with id > after_id, oldest first."""
        return (
            self._account_events(account_id, event_types)
            .filter(EventLog.id > after_id)
            .order_by(EventLog.id.asc())
            .limit(limit)
            .all()
        )

    def count_events(self, account_id: int, event_types: Optional[List[str]] = None) -> int:
        return self._account_events(account_id, event_types).count()

    def append_creation_event(
        self,
        account_id: int,
        event_type: str,
        build_payload: Callable[[int], Dict[str, Any]],
        actor_user_id: Optional[int] = None,
    ) -> int:
        """
        Add the creation event of a task, transaction or inventory item.

        The new entity takes the id of its own creation event, which comes from
        the event_log primary key sequence, so concurrent creations (in any
        account) never share an id.

        Args:
            build_payload: Called with the allocated id, returns the payload

        Returns:
            The entity id (equal to the event id)
        """
        event = EventLog(
            account_id=account_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json={},
            occurred_at=datetime.now(timezone.utc),
        )
        self.db.add(event)
        self.db.flush()

        event.payload_json = build_payload(event.id)
        self.db.flush()
        return event.id
