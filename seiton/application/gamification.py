"""
Gamification use cases - points, streaks, achievements and points history.

Every command appends a single event; ProfileProjector turns it into the new
profile state (points and level always move together).
"""
from __future__ import annotations

import logging
from datetime import date, tzinfo

from sqlalchemy.orm import Session

from seiton.config import get_settings
from seiton.domain.gamification import ACHIEVEMENTS_BY_ID
from seiton.domain.profile import Profile, UserProfile
from seiton.infrastructure.db.models import EventLog, PointsEntry, TaskModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.profile import ACHIEVEMENT_REASON_PREFIX, ProfileProjector
from seiton.application.profile import EnsureProfileUseCase, ProfileValidationError, load_profile

logger = logging.getLogger(__name__)

# Maps points_ledger.reason -> human-readable label
POINTS_REASON_LABELS: dict[str, str] = {
    "task_completed": "Task completed",
    "task_uncompleted": "Task reopened",
    "manual": "Points adjustment",
}


def describe_points_entry(reason: str, title: str | None = None) -> str:
    """
    Build a human-readable description for a points ledger row.

    Examples:
        'Task completed: "Buy groceries"'
        'Achievement unlocked: Task Master'
    """
    if reason.startswith(ACHIEVEMENT_REASON_PREFIX):
        achievement = ACHIEVEMENTS_BY_ID.get(reason[len(ACHIEVEMENT_REASON_PREFIX):])
        name = achievement.title if achievement else reason[len(ACHIEVEMENT_REASON_PREFIX):]
        return f"Achievement unlocked: {name}"

    base = POINTS_REASON_LABELS.get(reason, reason.replace("_", " ").capitalize())
    if title:
        return f'{base}: "{title}"'
    return base


class _ProfileCommand:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def _append(self, user_id: int, event_type: str, payload: dict, actor_user_id: int | None) -> int:
        EnsureProfileUseCase(self.db).execute(user_id)
        event_id = self.event_repo.append_event(
            account_id=user_id,
            event_type=event_type,
            payload=payload,
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        ProfileProjector(self.db).run(user_id)
        return event_id


class AdjustPointsUseCase(_ProfileCommand):
    """Add (positive delta) or remove (negative delta) points."""

    def execute(
        self,
        user_id: int,
        delta: int,
        reason: str = "manual",
        actor_user_id: int | None = None,
    ) -> UserProfile:
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ProfileValidationError("Points must be an integer")
        if delta == 0:
            raise ProfileValidationError("Points must not be zero")
        reason = (reason or "manual").strip()
        if reason.startswith(ACHIEVEMENT_REASON_PREFIX) or reason in ("task_completed", "task_uncompleted"):
            raise ProfileValidationError(f"Reason '{reason}' is reserved")

        self._append(user_id, "points_adjusted", Profile.adjust_points(delta, reason), actor_user_id)
        logger.info("Points adjusted user_id=%s delta=%s reason=%s", user_id, delta, reason)
        return load_profile(self.db, user_id)


def add_points(db: Session, user_id: int, points: int, reason: str = "manual") -> UserProfile:
    if points <= 0:
        raise ProfileValidationError("Points to add must be positive")
    return AdjustPointsUseCase(db).execute(user_id, points, reason, actor_user_id=user_id)


def remove_points(db: Session, user_id: int, points: int, reason: str = "manual") -> UserProfile:
    if points <= 0:
        raise ProfileValidationError("Points to remove must be positive")
    return AdjustPointsUseCase(db).execute(user_id, -points, reason, actor_user_id=user_id)


class UpdateStreakUseCase(_ProfileCommand):
    def execute(self, user_id: int, task_date: date, actor_user_id: int | None = None) -> UserProfile:
        self._append(user_id, "streak_recorded", Profile.record_streak(task_date), actor_user_id)
        return load_profile(self.db, user_id)


class CheckAchievementsUseCase(_ProfileCommand):
    def execute(self, user_id: int, actor_user_id: int | None = None) -> list[str]:
        """
        Unlock every achievement the current counters satisfy.

        Returns:
            Ids unlocked by this call, in table order (empty if none).
        """
        profile = EnsureProfileUseCase(self.db).execute(user_id)
        payload = Profile.check_achievements(profile.completed_tasks, profile.current_streak)
        event_id = self._append(user_id, "achievements_checked", payload, actor_user_id)

        unlocked = achievements_unlocked_by_event(self.db, event_id)
        if unlocked:
            logger.info("Achievements unlocked user_id=%s ids=%s", user_id, unlocked)
        return unlocked


def achievements_unlocked_by_event(db: Session, event_id: int) -> list[str]:
    rows = (
        db.query(PointsEntry.reason)
        .filter(
            PointsEntry.source_event_id == event_id,
            PointsEntry.reason.like(ACHIEVEMENT_REASON_PREFIX + "%"),
        )
        .order_by(PointsEntry.id.asc())
        .all()
    )
    return [reason[len(ACHIEVEMENT_REASON_PREFIX):] for (reason,) in rows]


class PointsHistoryService:
    def __init__(self, db: Session, tz: tzinfo | None = None):
        self.db = db
        self.tz = tz or get_settings().tz

    def list_recent(self, user_id: int, limit: int = 10) -> list[dict]:
        """Return the last *limit* ledger rows for *user_id*, with descriptions."""
        rows = (
            self.db.query(PointsEntry, EventLog)
            .outerjoin(EventLog, EventLog.id == PointsEntry.source_event_id)
            .filter(PointsEntry.user_id == user_id)
            .order_by(PointsEntry.id.desc())
            .limit(limit)
            .all()
        )

        task_ids = {
            int(ev.payload_json["task_id"])
            for _, ev in rows
            if ev is not None and ev.payload_json.get("task_id")
        }
        titles: dict[int, str] = {}
        if task_ids:
            for t in self.db.query(TaskModel).filter(
                TaskModel.account_id == user_id,
                TaskModel.task_id.in_(task_ids),
            ).all():
                titles[t.task_id] = t.title

        result = []
        for entry, ev in rows:
            title = None
            if ev is not None and ev.payload_json.get("task_id"):
                title = titles.get(int(ev.payload_json["task_id"]))

            occurred = ev.occurred_at if ev is not None else entry.created_at
            if occurred is not None and occurred.tzinfo is not None:
                occurred = occurred.astimezone(self.tz)

            result.append({
                "created_at": occurred.strftime("%d/%m/%Y %H:%M") if occurred else "-",
                "description": describe_points_entry(entry.reason, title=title),
                "points": entry.points,
                "reason": entry.reason,
            })
        return result
