"""
Tests for the dashboard and rewards view builders.
"""
from datetime import datetime, timedelta, timezone

from seiton.application.rewards import RewardsService, build_achievement_board
from seiton.application.dashboard import DashboardService
from seiton.application.subscription import ChangePlanUseCase
from seiton.application.tasks_usecases import CreateTaskUseCase, ToggleTaskUseCase
from seiton.application.transactions import CreateTransactionUseCase


class TestDashboard:
    def test_new_user(self, db_session, sample_account_id, today):
        view = DashboardService(db_session).build(sample_account_id, today)

        assert view["profile"].total_points == 0
        assert view["progress"].level == 1
        assert view["progress"].points_needed == 500
        assert view["upcoming_tasks"] == []
        assert len(view["finance_series"]) == 6
        assert view["finance_enabled"] is False

    def test_upcoming_tasks_capped_at_five(self, db_session, sample_account_id, today):
        use_case = CreateTaskUseCase(db_session)
        for i in range(7):
            use_case.execute(sample_account_id, f"Task {i}", today + timedelta(days=i))

        view = DashboardService(db_session).build(sample_account_id, today)

        assert [t.title for t in view["upcoming_tasks"]] == [f"Task {i}" for i in range(5)]

    def test_premium_sees_finance_summary(self, db_session, sample_account_id, today):
        now = datetime.now(timezone.utc)
        ChangePlanUseCase(db_session).execute(sample_account_id, "premium", months=1, now=now)
        CreateTransactionUseCase(db_session).execute(sample_account_id, "income", "200", "Sales")

        view = DashboardService(db_session).build(sample_account_id, today, now=now)

        assert view["finance_enabled"] is True
        assert view["finance_totals"]["balance"] == 200


class TestRewards:
    def test_board_shows_recorded_unlocks_only(self):
        board = build_achievement_board(["first-task"], completed_tasks=12, current_streak=3)
        by_id = {a["id"]: a for a in board}

        assert by_id["first-task"]["unlocked"] is True
        # threshold met but never recorded
        assert by_id["task-master"]["unlocked"] is False
        assert by_id["task-master"]["progress"] == 10
        assert by_id["dedication"]["progress"] == 12
        assert by_id["streak"]["progress"] == 3

    def test_after_first_completion(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Buy flour", today)
        ToggleTaskUseCase(db_session).execute(sample_account_id, task_id)

        view = RewardsService(db_session).build(sample_account_id)

        assert view["profile"].total_points == 60
        assert view["progress"].points_in_level == 60
        assert view["unlocked_count"] == 1
        descriptions = {entry["description"] for entry in view["history"]}
        assert descriptions == {'Task completed: "Buy flour"', "Achievement unlocked: First Step"}
        assert sorted(entry["points"] for entry in view["history"]) == [10, 50]
