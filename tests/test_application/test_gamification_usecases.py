"""
Tests for points, streak and achievement commands and the points history.
"""
from datetime import datetime, timedelta, timezone

import pytest

from seiton.application.gamification import (
    AdjustPointsUseCase,
    CheckAchievementsUseCase,
    PointsHistoryService,
    UpdateStreakUseCase,
    add_points,
    describe_points_entry,
    remove_points,
)
from seiton.application.profile import ProfileService, ProfileValidationError
from seiton.application.tasks_usecases import CreateTaskUseCase, ToggleTaskUseCase
from seiton.domain.profile import Profile
from seiton.infrastructure.eventlog.repository import EventLogRepository


class TestPoints:
    def test_add_points_recomputes_level(self, db_session, sample_account_id):
        profile = add_points(db_session, sample_account_id, 100)
        assert (profile.total_points, profile.level) == (100, 1)

        profile = add_points(db_session, sample_account_id, 400)
        assert (profile.total_points, profile.level) == (500, 2)

    def test_remove_points_recomputes_level(self, db_session, sample_account_id):
        add_points(db_session, sample_account_id, 500)
        profile = remove_points(db_session, sample_account_id, 1)
        assert (profile.total_points, profile.level) == (499, 1)

    def test_non_positive_amounts_rejected(self, db_session, sample_account_id):
        with pytest.raises(ProfileValidationError):
            add_points(db_session, sample_account_id, 0)
        with pytest.raises(ProfileValidationError):
            remove_points(db_session, sample_account_id, -5)

    def test_reserved_reason_rejected(self, db_session, sample_account_id):
        with pytest.raises(ProfileValidationError):
            AdjustPointsUseCase(db_session).execute(sample_account_id, 50, reason="achievement:legend")


class TestStreak:
    def test_update_streak_for_today(self, db_session, sample_account_id, today):
        profile = UpdateStreakUseCase(db_session).execute(sample_account_id, today)
        assert profile.current_streak == 1
        assert profile.longest_streak == 1
        assert profile.last_task_date == today


class TestAchievements:
    def test_nothing_to_unlock_for_new_profile(self, db_session, sample_account_id):
        assert CheckAchievementsUseCase(db_session).execute(sample_account_id) == []

    def test_unlocks_streak_and_pays_once(self, db_session, sample_account_id, local_tz):
        ProfileService(db_session).get_profile(sample_account_id)
        repo = EventLogRepository(db_session)
        start = datetime(2026, 3, 1, 12, 0, tzinfo=local_tz)
        for i in range(7):
            moment = start + timedelta(days=i)
            repo.append_event(
                account_id=sample_account_id,
                event_type="streak_recorded",
                payload=Profile.record_streak(moment.date()),
                occurred_at=moment.astimezone(timezone.utc),
            )
        db_session.commit()

        use_case = CheckAchievementsUseCase(db_session)
        assert use_case.execute(sample_account_id) == ["streak"]
        assert use_case.execute(sample_account_id) == []

        profile = ProfileService(db_session).get_profile(sample_account_id)
        assert profile.unlocked_achievements == ["streak"]
        assert profile.total_points == 300


class TestPointsHistory:
    def test_lists_recent_entries_with_descriptions(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Write report", today)
        ToggleTaskUseCase(db_session).execute(sample_account_id, task_id)

        history = PointsHistoryService(db_session).list_recent(sample_account_id)

        assert [h["points"] for h in history] == [50, 10]
        assert history[0]["description"] == "Achievement unlocked: First Step"
        assert history[1]["description"] == 'Task completed: "Write report"'

    def test_describe_manual_entry(self):
        assert describe_points_entry("manual") == "Points adjustment"
        assert describe_points_entry("bonus_week") == "Bonus week"
