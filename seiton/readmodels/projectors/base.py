"""
Projector base - turns the event log into read model rows.

Every projector keeps a checkpoint (last applied event id) per account in
projector_checkpoints. A run picks up the events after the checkpoint, applies
them and stores the new checkpoint in the same commit, so an interrupted run
simply resumes where it stopped.
"""
import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seiton.infrastructure.db.models import EventLog, ProjectorCheckpoint
from seiton.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


class BaseProjector(ABC):
    """
    Subclasses set ``name`` (the checkpoint key) and ``event_types`` (the
    events they react to; empty means every event) and implement
    ``handle_event``. Handlers must tolerate seeing an event twice.
    """

    name: ClassVar[str]
    event_types: ClassVar[tuple[str, ...]] = ()

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    @abstractmethod
    def handle_event(self, event: EventLog) -> None:
        ...

    def _checkpoint_row(self, account_id: int) -> ProjectorCheckpoint | None:
        return self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == self.name,
            ProjectorCheckpoint.account_id == account_id,
        ).first()

    def checkpoint(self, account_id: int) -> int:
        row = self._checkpoint_row(account_id)
        return row.last_event_id if row else 0

    def move_checkpoint(self, account_id: int, event_id: int) -> None:
        self.db.flush()
        row = self._checkpoint_row(account_id)
        if row is None:
            self.db.add(ProjectorCheckpoint(
                projector_name=self.name,
                account_id=account_id,
                last_event_id=event_id,
            ))
        else:
            row.last_event_id = event_id

    def run(self, account_id: int, batch_size: int = 200) -> int:
        """
        Apply the account's pending events, one commit per batch.

        Two overlapping runs for one account race on the checkpoint and on the
        read model's unique keys; the loser rolls back and stops.

        Returns:
            How many events were applied.
        """
        position = self.checkpoint(account_id)
        applied = 0

        while True:
            batch = self.event_repo.list_events_since(
                account_id,
                after_id=position,
                limit=batch_size,
                event_types=list(self.event_types) or None,
            )
            try:
                for event in batch:
                    self.handle_event(event)
                    position = event.id
                if batch:
                    self.move_checkpoint(account_id, position)
                    self.db.commit()
            except IntegrityError:
                # A concurrent run for the same account committed this batch first
                self.db.rollback()
                logger.warning(
                    "%s projector lost a concurrent run for account_id=%s, batch left to the winner",
                    self.name, account_id,
                )
                return applied
            applied += len(batch)

            if len(batch) < batch_size:
                break

        if applied:
            logger.debug("%s projector applied %s events for account_id=%s", self.name, applied, account_id)
        return applied

    def reset(self, account_id: int) -> None:
        """
        Rewind to the start of the log.

        Subclasses delete their rows for the account first, then call this.
        """
        self.move_checkpoint(account_id, 0)


class ProjectorOrchestrator:
    """Runs a fixed list of projectors, in registration order."""

    def __init__(self, db: Session):
        self.db = db
        self.projectors: list[BaseProjector] = []

    def register(self, projector: BaseProjector) -> None:
        self.projectors.append(projector)

    def run_all(self, account_id: int) -> dict[str, int]:
        return {p.name: p.run(account_id) for p in self.projectors}

    def rebuild_all(self, account_id: int) -> dict[str, int]:
        """Wipe every read model of the account and replay the whole log."""
        for projector in self.projectors:
            projector.reset(account_id)
        self.db.flush()
        counts = self.run_all(account_id)
        logger.info("Rebuilt read models for account_id=%s: %s", account_id, counts)
        return counts
