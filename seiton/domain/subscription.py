"""
Subscription plans and feature gating.

Two tiers:
  basic   - free, planner + rewards, task creation capped
  premium - everything, valid until subscription_end_date
"""
import calendar
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from seiton.domain.profile import PLAN_BASIC, PLAN_PREMIUM, UserProfile

FEATURE_PLANNER = "planner"
FEATURE_FINANCE = "finance"
FEATURE_REWARDS = "rewards"
FEATURE_ADVANCED_GAMIFICATION = "advanced_gamification"

FEATURES = (FEATURE_PLANNER, FEATURE_FINANCE, FEATURE_REWARDS, FEATURE_ADVANCED_GAMIFICATION)
BASIC_FEATURES = frozenset({FEATURE_PLANNER, FEATURE_REWARDS})

DEFAULT_BASIC_TASK_LIMIT = 50


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: str
    price_value: float
    features: tuple[str, ...] = field(default_factory=tuple)
    highlight: bool = False


PLANS: tuple[Plan, ...] = (
    Plan(
        id=PLAN_BASIC,
        name="Basic",
        price="Free",
        price_value=0,
        features=(
            "Seiton Planner",
            "Basic agenda",
            "Up to 50 tasks",
            "Points and achievements",
            "Email support",
        ),
    ),
    Plan(
        id=PLAN_PREMIUM,
        name="Premium",
        price="R$ 29,90/month",
        price_value=29.90,
        features=(
            "Everything in Basic",
            "Finance management",
            "Inventory control",
            "Unlimited tasks",
            "Advanced gamification",
            "Priority support",
            "Reports and analytics",
        ),
        highlight=True,
    ),
)

PLANS_BY_ID = {p.id: p for p in PLANS}


@dataclass(frozen=True)
class TaskCreationCheck:
    can_create: bool
    reason: str | None = None


def get_current_plan(profile: UserProfile) -> str:
    return profile.subscription_plan or PLAN_BASIC


def is_subscription_active(profile: UserProfile, now: datetime) -> bool:
    """Basic never expires; premium is active while its end date is in the future."""
    if profile.subscription_plan == PLAN_BASIC:
        return True
    if profile.subscription_end_date is None:
        return False
    return profile.subscription_end_date > now


def has_feature_access(profile: UserProfile, feature: str, now: datetime) -> bool:
    if profile.subscription_plan == PLAN_PREMIUM:
        return is_subscription_active(profile, now)
    return feature in BASIC_FEATURES


def can_create_task(
    profile: UserProfile,
    now: datetime,
    limit: int = DEFAULT_BASIC_TASK_LIMIT,
) -> TaskCreationCheck:
    """
    Whether the user may add another task.

    The basic cap is checked against the lifetime completed-task counter,
    not a per-month count.
    """
    if profile.subscription_plan == PLAN_PREMIUM and is_subscription_active(profile, now):
        return TaskCreationCheck(can_create=True)

    if profile.completed_tasks < limit:
        return TaskCreationCheck(can_create=True)

    return TaskCreationCheck(
        can_create=False,
        reason=f"Limit of {limit} tasks reached. Upgrade to Premium for unlimited tasks.",
    )


def add_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the month's last day."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def format_renewal_date(end_date: datetime | None) -> str:
    if end_date is None:
        return "N/A"
    return end_date.strftime("%d/%m/%Y")


def days_remaining(end_date: datetime | None, now: datetime) -> int:
    """Whole days left (rounded up), never negative."""
    if end_date is None:
        return 0
    seconds = (end_date - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


class Subscription:
    """Generates event payloads for plan changes."""

    @staticmethod
    def change_plan(plan: str, months: int, now: datetime | None = None) -> Dict[str, Any]:
        start = now or datetime.now(timezone.utc)
        return {
            "plan": plan,
            "months": months,
            "start_date": start.isoformat(),
            "end_date": add_months(start, months).isoformat(),
        }
