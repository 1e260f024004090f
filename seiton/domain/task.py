"""Task domain entity - generates events for planner task operations"""
from datetime import date, datetime, timezone
from typing import Dict, Any

from seiton.domain.gamification import TASK_POINTS


class Task:
    @staticmethod
    def create(
        account_id: int,
        task_id: int,
        title: str,
        task_date: date,
        points: int = TASK_POINTS,
    ) -> Dict[str, Any]:
        return {
            "task_id": task_id,
            "account_id": account_id,
            "title": title,
            "task_date": task_date.isoformat(),
            "points": points,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def complete(task_id: int, task_date: date, points: int) -> Dict[str, Any]:
        """
        task_completed payload.

        Carries everything the profile projection needs (date and points), so
        the completion is applied from this single event.
        """
        return {
            "task_id": task_id,
            "task_date": task_date.isoformat(),
            "points": points,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def uncomplete(task_id: int, points: int) -> Dict[str, Any]:
        return {
            "task_id": task_id,
            "points": points,
            "uncompleted_at": datetime.now(timezone.utc).isoformat(),
        }
