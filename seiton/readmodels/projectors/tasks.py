"""TasksProjector - one tasks row per task_created, flipped by completion events"""
from datetime import date, datetime

from seiton.readmodels.projectors.base import BaseProjector
from seiton.infrastructure.db.models import TaskModel, EventLog


class TasksProjector(BaseProjector):
    name = "tasks"
    event_types = ("task_created", "task_completed", "task_uncompleted")

    def handle_event(self, event: EventLog) -> None:
        payload = event.payload_json
        self.db.flush()
        task = self.db.query(TaskModel).filter(TaskModel.task_id == payload["task_id"]).first()

        if event.event_type == "task_created":
            if task is None:
                self.db.add(TaskModel(
                    task_id=payload["task_id"],
                    account_id=payload["account_id"],
                    title=payload["title"],
                    task_date=date.fromisoformat(payload["task_date"]),
                    points=payload["points"],
                    is_completed=False,
                    created_at=datetime.fromisoformat(payload["created_at"]),
                ))
            return

        # Completion events for a task that was never created are dropped
        if task is None:
            return
        if event.event_type == "task_completed":
            task.is_completed = True
            task.completed_at = datetime.fromisoformat(payload["completed_at"])
        else:
            task.is_completed = False
            task.completed_at = None

    def reset(self, account_id: int) -> None:
        self.db.query(TaskModel).filter(TaskModel.account_id == account_id).delete()
        super().reset(account_id)
