"""
User profile - typed record and event payloads for profile commands
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from seiton.domain.gamification import level_for_points

PROFILE_SCHEMA_VERSION = 1

PLAN_BASIC = "basic"
PLAN_PREMIUM = "premium"

PERSONAL_FIELDS = ("display_name", "phone", "address", "city", "state", "zip_code")


class UserProfile(BaseModel):
    """
    Profile as read from storage.

    Built with ``UserProfile.model_validate(row)``; a row whose level does not
    match its points, or whose schema is newer than this code, is rejected.
    """
    model_config = ConfigDict(from_attributes=True)

    user_id: int

    display_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    total_points: int = 0
    level: int = 1
    completed_tasks: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_task_date: date | None = None
    unlocked_achievements: list[str] = []

    subscription_plan: Literal["basic", "premium"] = PLAN_BASIC
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None

    schema_version: int = PROFILE_SCHEMA_VERSION
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("subscription_start_date", "subscription_end_date", "created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite drops tzinfo; stored values are always UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("unlocked_achievements")
    @classmethod
    def _unique_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _check_consistency(self) -> "UserProfile":
        if self.schema_version > PROFILE_SCHEMA_VERSION:
            raise ValueError(f"Unsupported profile schema version {self.schema_version}")
        if self.level != level_for_points(self.total_points):
            raise ValueError(
                f"Profile {self.user_id}: level {self.level} does not match {self.total_points} points"
            )
        return self

    @property
    def is_premium(self) -> bool:
        return self.subscription_plan == PLAN_PREMIUM


class Profile:
    """Generates event payloads for profile commands."""

    @staticmethod
    def create(user_id: int) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "schema_version": PROFILE_SCHEMA_VERSION,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def update(**changes) -> Dict[str, Any]:
        """profile_updated payload (sparse; blank strings clear the field)."""
        payload: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
        for key in PERSONAL_FIELDS:
            if key in changes:
                value = changes[key]
                if isinstance(value, str):
                    value = value.strip()
                payload[key] = value or None
        return payload

    @staticmethod
    def adjust_points(delta: int, reason: str) -> Dict[str, Any]:
        return {"delta": delta, "reason": reason}

    @staticmethod
    def record_streak(task_date: date) -> Dict[str, Any]:
        return {"task_date": task_date.isoformat()}

    @staticmethod
    def check_achievements(completed_tasks: int, current_streak: int) -> Dict[str, Any]:
        return {"completed_tasks": completed_tasks, "current_streak": current_streak}
