"""
ProfileProjector - builds user_profiles and points_ledger from the event log.

Events:
  profile_created             -> row with zeroed counters, plan=basic
  profile_updated             -> personal fields (sparse)
  points_adjusted             -> +/- delta
  streak_recorded             -> streak rules for payload.task_date
  achievements_checked        -> unlock against the counters in the payload
  task_completed              -> +points, +1 task, streak, achievements
  task_uncompleted            -> -points, -1 task (streak/achievements kept)
  subscription_plan_changed   -> plan + start/end dates

Every handler that touches total_points rewrites level in the same flush, and
the whole task completion is applied from one event, so a profile row is never
half-updated. "Today" for streaks is the local date of the event, which keeps
replays deterministic.
"""
from datetime import date, datetime, timezone, tzinfo

from seiton.config import get_settings
from seiton.domain.gamification import level_for_points, newly_unlocked, next_streak
from seiton.domain.profile import PLAN_BASIC, PROFILE_SCHEMA_VERSION
from seiton.infrastructure.db.models import EventLog, PointsEntry, UserProfileModel
from seiton.readmodels.projectors.base import BaseProjector

PROFILE_EVENT_TYPES = (
    "profile_created",
    "profile_updated",
    "points_adjusted",
    "streak_recorded",
    "achievements_checked",
    "task_completed",
    "task_uncompleted",
    "subscription_plan_changed",
)

ACHIEVEMENT_REASON_PREFIX = "achievement:"


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class ProfileProjector(BaseProjector):
    """
    Idempotent: each row remembers the last event applied to it, and
    points_ledger is unique per (source_event_id, reason).
    """

    name = "profile"
    event_types = PROFILE_EVENT_TYPES

    def __init__(self, db, tz: tzinfo | None = None):
        super().__init__(db)
        self.tz = tz or get_settings().tz

    def handle_event(self, event: EventLog) -> None:
        handlers = {
            "profile_created": self._handle_created,
            "profile_updated": self._handle_updated,
            "points_adjusted": self._handle_points_adjusted,
            "streak_recorded": self._handle_streak_recorded,
            "achievements_checked": self._handle_achievements_checked,
            "task_completed": self._handle_task_completed,
            "task_uncompleted": self._handle_task_uncompleted,
            "subscription_plan_changed": self._handle_plan_changed,
        }
        handler = handlers.get(event.event_type)
        if not handler:
            return

        state = self._get_or_create_state(event)
        if state.last_event_id >= event.id:
            return
        handler(state, event)
        state.last_event_id = event.id
        self.db.flush()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _get_or_create_state(self, event: EventLog) -> UserProfileModel:
        user_id = event.account_id
        self.db.flush()
        state = self.db.query(UserProfileModel).filter(UserProfileModel.user_id == user_id).first()
        if state:
            return state

        payload = event.payload_json or {}
        created_at = _parse_dt(payload.get("created_at")) or self._occurred_at(event)
        state = UserProfileModel(
            user_id=user_id,
            total_points=0,
            level=1,
            completed_tasks=0,
            current_streak=0,
            longest_streak=0,
            last_task_date=None,
            unlocked_achievements=[],
            subscription_plan=PLAN_BASIC,
            schema_version=PROFILE_SCHEMA_VERSION,
            last_event_id=0,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(state)
        self.db.flush()
        return state

    @staticmethod
    def _occurred_at(event: EventLog) -> datetime:
        dt = event.occurred_at
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    def _local_date(self, event: EventLog) -> date:
        return self._occurred_at(event).astimezone(self.tz).date()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _apply_points(self, state: UserProfileModel, event: EventLog, delta: int, reason: str) -> None:
        if delta == 0:
            return
        self.db.add(PointsEntry(
            user_id=state.user_id,
            source_event_id=event.id,
            points=delta,
            reason=reason,
        ))
        state.total_points += delta
        state.level = level_for_points(state.total_points)
        state.updated_at = self._occurred_at(event)

    def _apply_streak(self, state: UserProfileModel, event: EventLog, task_date: date) -> None:
        update = next_streak(
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            last_task_date=state.last_task_date,
            task_date=task_date,
            today=self._local_date(event),
        )
        state.current_streak = update.current_streak
        state.longest_streak = update.longest_streak
        state.last_task_date = update.last_task_date
        state.updated_at = self._occurred_at(event)

    def _unlock_achievements(
        self, state: UserProfileModel, event: EventLog, completed_tasks: int, current_streak: int
    ) -> None:
        unlocked = list(state.unlocked_achievements or [])
        for achievement in newly_unlocked(completed_tasks, current_streak, unlocked):
            unlocked.append(achievement.id)
            self._apply_points(state, event, achievement.points, ACHIEVEMENT_REASON_PREFIX + achievement.id)
        # Reassign so the JSON column is marked dirty
        state.unlocked_achievements = unlocked

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_created(self, state: UserProfileModel, event: EventLog) -> None:
        pass

    def _handle_updated(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        for field in ("display_name", "phone", "address", "city", "state", "zip_code"):
            if field in payload:
                setattr(state, field, payload[field])
        state.updated_at = self._occurred_at(event)

    def _handle_points_adjusted(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        self._apply_points(state, event, int(payload["delta"]), payload.get("reason") or "manual")

    def _handle_streak_recorded(self, state: UserProfileModel, event: EventLog) -> None:
        self._apply_streak(state, event, date.fromisoformat(event.payload_json["task_date"]))

    def _handle_achievements_checked(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        self._unlock_achievements(
            state, event,
            completed_tasks=int(payload.get("completed_tasks", state.completed_tasks)),
            current_streak=int(payload.get("current_streak", state.current_streak)),
        )

    def _handle_task_completed(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        self._apply_points(state, event, int(payload["points"]), "task_completed")
        state.completed_tasks += 1
        self._apply_streak(state, event, date.fromisoformat(payload["task_date"]))
        self._unlock_achievements(state, event, state.completed_tasks, state.current_streak)

    def _handle_task_uncompleted(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        self._apply_points(state, event, -int(payload["points"]), "task_uncompleted")
        state.completed_tasks = max(0, state.completed_tasks - 1)
        state.updated_at = self._occurred_at(event)

    def _handle_plan_changed(self, state: UserProfileModel, event: EventLog) -> None:
        payload = event.payload_json
        state.subscription_plan = payload["plan"]
        state.subscription_start_date = _parse_dt(payload.get("start_date"))
        state.subscription_end_date = _parse_dt(payload.get("end_date"))
        state.updated_at = self._occurred_at(event)

    def reset(self, account_id: int) -> None:
        """Drop the profile row and its ledger; the next run replays everything."""
        self.db.query(PointsEntry).filter(PointsEntry.user_id == account_id).delete()
        self.db.query(UserProfileModel).filter(UserProfileModel.user_id == account_id).delete()
        super().reset(account_id)
