"""
Dashboard view builder - profile summary, upcoming tasks, finance chart
"""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from seiton.domain.gamification import level_progress
from seiton.domain.subscription import FEATURE_FINANCE, has_feature_access
from seiton.application.profile import ProfileService
from seiton.application.tasks_usecases import upcoming_tasks
from seiton.application.transactions import get_monthly_series, get_totals

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def build(self, user_id: int, today: date, now: datetime | None = None) -> dict:
        now = now or datetime.now(timezone.utc)
        profile = ProfileService(self.db).get_profile(user_id)

        try:
            tasks = upcoming_tasks(self.db, user_id, today, limit=5)
        except SQLAlchemyError:
            logger.exception("Failed to load upcoming tasks for user_id=%s", user_id)
            self.db.rollback()
            tasks = []

        try:
            series = get_monthly_series(self.db, user_id, today, months=6)
            totals = get_totals(self.db, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to load finance summary for user_id=%s", user_id)
            self.db.rollback()
            series, totals = [], None

        return {
            "profile": profile,
            "progress": level_progress(profile.total_points),
            "upcoming_tasks": tasks,
            "finance_series": series,
            "finance_totals": totals,
            "finance_enabled": has_feature_access(profile, FEATURE_FINANCE, now),
        }
