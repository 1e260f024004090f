"""Task use cases - planner tasks and the task completion command"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seiton.config import get_settings
from seiton.domain.profile import UserProfile
from seiton.domain.subscription import can_create_task
from seiton.domain.task import Task
from seiton.infrastructure.db.models import EventLog, TaskModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.profile import ProfileProjector
from seiton.readmodels.projectors.tasks import TasksProjector
from seiton.application.gamification import achievements_unlocked_by_event
from seiton.application.profile import EnsureProfileUseCase, load_profile

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 512


class TaskValidationError(ValueError):
    pass


class PlanLimitError(ValueError):
    """The current plan does not allow another task."""
    pass


def _parse_task_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise TaskValidationError("Invalid task date")


class CreateTaskUseCase:
    def __init__(self, db: Session, task_limit: int | None = None):
        self.db = db
        self.event_repo = EventLogRepository(db)
        self.task_limit = task_limit if task_limit is not None else get_settings().BASIC_PLAN_TASK_LIMIT

    def execute(
        self,
        account_id: int,
        title: str,
        task_date: date | str,
        actor_user_id: int | None = None,
        now: datetime | None = None,
    ) -> int:
        title = (title or "").strip()
        if not title:
            raise TaskValidationError("Task title cannot be empty")
        if len(title) > TITLE_MAX_LENGTH:
            raise TaskValidationError(f"Task title is longer than {TITLE_MAX_LENGTH} characters")
        task_date = _parse_task_date(task_date)

        profile = EnsureProfileUseCase(self.db).execute(account_id)
        check = can_create_task(profile, now or datetime.now(timezone.utc), limit=self.task_limit)
        if not check.can_create:
            raise PlanLimitError(check.reason)

        task_id = self.event_repo.append_creation_event(
            account_id=account_id,
            event_type="task_created",
            build_payload=lambda new_id: Task.create(account_id, new_id, title, task_date),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        TasksProjector(self.db).run(account_id)
        return task_id


@dataclass
class ToggleResult:
    task_id: int
    completed: bool
    profile: UserProfile
    unlocked_achievements: list[str] = field(default_factory=list)


class ToggleTaskUseCase:
    """
    Complete an active task or reopen a completed one.

    One command, one event: task_completed carries the task date and points,
    and ProfileProjector applies points, counter, streak and achievements from
    it in a single write.
    """

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, account_id: int, task_id: int, actor_user_id: int | None = None) -> ToggleResult:
        EnsureProfileUseCase(self.db).execute(account_id)
        TasksProjector(self.db).run(account_id)

        task = self.db.query(TaskModel).filter(
            TaskModel.task_id == task_id,
            TaskModel.account_id == account_id,
        ).first()
        if not task:
            raise TaskValidationError(f"Task #{task_id} not found")

        if task.is_completed:
            event_type = "task_uncompleted"
            payload = Task.uncomplete(task_id, task.points)
        else:
            event_type = "task_completed"
            payload = Task.complete(task_id, task.task_date, task.points)

        # Two requests toggling from the same state share this key, so only one lands
        toggle_seq = self._toggle_count(account_id, task_id)
        event_id = None
        try:
            event_id = self.event_repo.append_event(
                account_id=account_id,
                event_type=event_type,
                payload=payload,
                actor_user_id=actor_user_id,
                idempotency_key=f"task-{task_id}-toggle-{toggle_seq + 1}",
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Concurrent toggle ignored task_id=%s account_id=%s", task_id, account_id)

        TasksProjector(self.db).run(account_id)
        ProfileProjector(self.db).run(account_id)

        task = self.db.query(TaskModel).filter(
            TaskModel.task_id == task_id,
            TaskModel.account_id == account_id,
        ).first()
        unlocked = achievements_unlocked_by_event(self.db, event_id) if event_id else []
        return ToggleResult(
            task_id=task_id,
            completed=bool(task.is_completed),
            profile=load_profile(self.db, account_id),
            unlocked_achievements=unlocked,
        )

    def _toggle_count(self, account_id: int, task_id: int) -> int:
        return self.db.query(EventLog).filter(
            EventLog.account_id == account_id,
            EventLog.event_type.in_(["task_completed", "task_uncompleted"]),
            EventLog.payload_json["task_id"].as_integer() == task_id,
        ).count()


def list_tasks_for_date(db: Session, account_id: int, day: date) -> list[TaskModel]:
    return (
        db.query(TaskModel)
        .filter(TaskModel.account_id == account_id, TaskModel.task_date == day)
        .order_by(TaskModel.created_at.asc(), TaskModel.task_id.asc())
        .all()
    )


def upcoming_tasks(db: Session, account_id: int, today: date, limit: int = 5) -> list[TaskModel]:
    """Open tasks scheduled for today or later, soonest first."""
    return (
        db.query(TaskModel)
        .filter(
            TaskModel.account_id == account_id,
            TaskModel.is_completed == False,  # noqa: E712
            TaskModel.task_date >= today,
        )
        .order_by(TaskModel.task_date.asc(), TaskModel.task_id.asc())
        .limit(limit)
        .all()
    )
