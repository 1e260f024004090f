"""
Subscription use cases - plan changes and the plan overview shown on settings
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from seiton.domain.profile import UserProfile
from seiton.domain.subscription import (
    FEATURES,
    PLANS,
    PLANS_BY_ID,
    Subscription,
    days_remaining,
    format_renewal_date,
    get_current_plan,
    has_feature_access,
    is_subscription_active,
)
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.profile import ProfileProjector
from seiton.application.profile import EnsureProfileUseCase, load_profile

logger = logging.getLogger(__name__)

MAX_MONTHS = 36


class SubscriptionValidationError(ValueError):
    pass


def parse_months(value: str) -> int:
    """Subscription length as typed in a form."""
    try:
        return int(str(value).strip())
    except ValueError:
        raise SubscriptionValidationError(f"Months must be a whole number between 1 and {MAX_MONTHS}")


class ChangePlanUseCase:
    """
    Switch the user's plan for a number of calendar months.

    Direct overwrite: no proration, no payment. The event log keeps the history.
    """

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        user_id: int,
        plan: str,
        months: int = 1,
        actor_user_id: int | None = None,
        now: datetime | None = None,
    ) -> UserProfile:
        if plan not in PLANS_BY_ID:
            raise SubscriptionValidationError(f"Unknown plan '{plan}'")
        if not isinstance(months, int) or isinstance(months, bool) or not 1 <= months <= MAX_MONTHS:
            raise SubscriptionValidationError(f"Months must be between 1 and {MAX_MONTHS}")

        EnsureProfileUseCase(self.db).execute(user_id)
        self.event_repo.append_event(
            account_id=user_id,
            event_type="subscription_plan_changed",
            payload=Subscription.change_plan(plan, months, now=now),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        ProfileProjector(self.db).run(user_id)
        logger.info("Plan changed user_id=%s plan=%s months=%s", user_id, plan, months)
        return load_profile(self.db, user_id)


def build_plan_view(profile: UserProfile, now: datetime | None = None) -> dict:
    """Everything the settings page and GET /plans need about plans."""
    now = now or datetime.now(timezone.utc)
    current = get_current_plan(profile)
    return {
        "current_plan": current,
        "current_plan_name": PLANS_BY_ID[current].name,
        "is_active": is_subscription_active(profile, now),
        "renewal_date": format_renewal_date(profile.subscription_end_date),
        "days_remaining": days_remaining(profile.subscription_end_date, now),
        "features": {f: has_feature_access(profile, f, now) for f in FEATURES},
        "plans": [
            {
                "id": p.id,
                "name": p.name,
                "price": p.price,
                "price_value": p.price_value,
                "features": list(p.features),
                "highlight": p.highlight,
                "is_current": p.id == current,
            }
            for p in PLANS
        ],
    }
