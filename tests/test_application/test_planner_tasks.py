"""
Tests for task creation, the task completion command and task queries.
"""
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from seiton.application.gamification import add_points
from seiton.application.profile import ProfileService
from seiton.application.subscription import ChangePlanUseCase
from seiton.application.tasks_usecases import (
    CreateTaskUseCase,
    PlanLimitError,
    TaskValidationError,
    ToggleTaskUseCase,
    list_tasks_for_date,
    upcoming_tasks,
)
from seiton.domain.task import Task
from seiton.infrastructure.db.models import EventLog, PointsEntry, TaskModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.tasks import TasksProjector


class TestCreateTask:
    def test_creates_task_with_fixed_points(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "  Buy flour  ", today)

        task = db_session.query(TaskModel).filter(TaskModel.task_id == task_id).one()
        assert task.title == "Buy flour"
        assert task.task_date == today
        assert task.points == 10
        assert task.is_completed is False

    def test_accepts_iso_date(self, db_session, sample_account_id):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Pay rent", "2026-05-01")
        task = db_session.query(TaskModel).filter(TaskModel.task_id == task_id).one()
        assert task.task_date.isoformat() == "2026-05-01"

    def test_task_id_is_its_creation_event_id(self, db_session, sample_account_id, today):
        use_case = CreateTaskUseCase(db_session)
        first = use_case.execute(sample_account_id, "One", today)
        second = use_case.execute(sample_account_id, "Two", today)

        assert second > first
        event = db_session.query(EventLog).filter(EventLog.id == second).one()
        assert event.event_type == "task_created"
        assert event.payload_json["task_id"] == second

    def test_blank_title_rejected(self, db_session, sample_account_id, today):
        with pytest.raises(TaskValidationError):
            CreateTaskUseCase(db_session).execute(sample_account_id, "   ", today)

    def test_bad_date_rejected(self, db_session, sample_account_id):
        with pytest.raises(TaskValidationError):
            CreateTaskUseCase(db_session).execute(sample_account_id, "Task", "31/12/2026")


class TestTaskCompletion:
    def test_new_user_completes_first_task(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "First", today)

        result = ToggleTaskUseCase(db_session).execute(sample_account_id, task_id)

        assert result.completed is True
        assert result.unlocked_achievements == ["first-task"]
        profile = result.profile
        assert profile.completed_tasks == 1
        assert profile.total_points == 60
        assert profile.level == 1
        assert profile.current_streak == 1
        assert profile.unlocked_achievements == ["first-task"]

    def test_490_points_plus_task_reaches_level_2(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Task", today)
        toggle = ToggleTaskUseCase(db_session)
        toggle.execute(sample_account_id, task_id)   # 60 (first-task earned)
        toggle.execute(sample_account_id, task_id)   # reopened: 50
        profile = add_points(db_session, sample_account_id, 440)
        assert (profile.total_points, profile.level) == (490, 1)

        result = toggle.execute(sample_account_id, task_id)

        assert result.profile.total_points == 500
        assert result.profile.level == 2
        assert result.unlocked_achievements == []

    def test_reopen_removes_points(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Task", today)
        toggle = ToggleTaskUseCase(db_session)
        toggle.execute(sample_account_id, task_id)

        result = toggle.execute(sample_account_id, task_id)

        assert result.completed is False
        assert result.profile.completed_tasks == 0
        assert result.profile.total_points == 50
        assert result.profile.unlocked_achievements == ["first-task"]

    def test_each_toggle_is_one_event(self, db_session, sample_account_id, today):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Task", today)
        toggle = ToggleTaskUseCase(db_session)
        toggle.execute(sample_account_id, task_id)
        toggle.execute(sample_account_id, task_id)
        toggle.execute(sample_account_id, task_id)

        repo = EventLogRepository(db_session)
        assert repo.count_events(sample_account_id, ["task_completed"]) == 2
        assert repo.count_events(sample_account_id, ["task_uncompleted"]) == 1
        profile = ProfileService(db_session).get_profile(sample_account_id)
        assert profile.completed_tasks == 1
        assert profile.total_points == 60

    def test_unknown_task(self, db_session, sample_account_id):
        with pytest.raises(TaskValidationError):
            ToggleTaskUseCase(db_session).execute(sample_account_id, 999)

    def test_cannot_toggle_someone_elses_task(self, db_session, today):
        task_id = CreateTaskUseCase(db_session).execute(1, "Mine", today)
        with pytest.raises(TaskValidationError):
            ToggleTaskUseCase(db_session).execute(2, task_id)


class TestConcurrency:
    def test_overlapping_creations_in_two_accounts_get_distinct_ids(self, db_engine, today):
        Session = sessionmaker(bind=db_engine)
        alice_db, bob_db = Session(), Session()
        try:
            # Both creations are flushed before either request commits
            alice_id = EventLogRepository(alice_db).append_creation_event(
                1, "task_created", lambda new_id: Task.create(1, new_id, "Alice secret", today),
            )
            bob_id = EventLogRepository(bob_db).append_creation_event(
                2, "task_created", lambda new_id: Task.create(2, new_id, "Bob task", today),
            )
            alice_db.commit()
            bob_db.commit()
            TasksProjector(alice_db).run(1)
            TasksProjector(bob_db).run(2)

            assert alice_id != bob_id
            assert [t.title for t in list_tasks_for_date(bob_db, 2, today)] == ["Bob task"]
            assert [t.title for t in list_tasks_for_date(alice_db, 1, today)] == ["Alice secret"]
        finally:
            alice_db.close()
            bob_db.close()

    def test_stale_second_toggle_is_ignored(self, db_session, sample_account_id, today, monkeypatch):
        task_id = CreateTaskUseCase(db_session).execute(sample_account_id, "Task", today)
        ToggleTaskUseCase(db_session).execute(sample_account_id, task_id)

        # A request that counted the toggles before the first one committed
        monkeypatch.setattr(ToggleTaskUseCase, "_toggle_count", lambda self, account_id, task_id: 0)
        result = ToggleTaskUseCase(db_session).execute(sample_account_id, task_id)

        assert result.completed is True
        assert result.unlocked_achievements == []
        assert result.profile.total_points == 60
        assert result.profile.completed_tasks == 1
        repo = EventLogRepository(db_session)
        assert repo.count_events(sample_account_id, ["task_completed"]) == 1
        assert repo.count_events(sample_account_id, ["task_uncompleted"]) == 0
        assert db_session.query(PointsEntry).filter(PointsEntry.reason == "task_completed").count() == 1


class TestPlanLimit:
    def _complete_tasks(self, db_session, account_id, day, count):
        for i in range(count):
            task_id = CreateTaskUseCase(db_session, task_limit=count).execute(account_id, f"Task {i}", day)
            ToggleTaskUseCase(db_session).execute(account_id, task_id)

    def test_basic_plan_blocked_at_limit(self, db_session, sample_account_id, today):
        self._complete_tasks(db_session, sample_account_id, today, 2)

        with pytest.raises(PlanLimitError) as exc:
            CreateTaskUseCase(db_session, task_limit=2).execute(sample_account_id, "One more", today)
        assert "Upgrade to Premium" in str(exc.value)

    def test_premium_is_unlimited(self, db_session, sample_account_id, today):
        self._complete_tasks(db_session, sample_account_id, today, 2)
        ChangePlanUseCase(db_session).execute(sample_account_id, "premium", months=1)

        task_id = CreateTaskUseCase(db_session, task_limit=2).execute(sample_account_id, "One more", today)
        assert task_id > 0


class TestTaskQueries:
    def test_list_for_date(self, db_session, sample_account_id, today):
        use_case = CreateTaskUseCase(db_session)
        use_case.execute(sample_account_id, "Today 1", today)
        use_case.execute(sample_account_id, "Today 2", today)
        use_case.execute(sample_account_id, "Tomorrow", today + timedelta(days=1))
        use_case.execute(2, "Other account", today)

        titles = [t.title for t in list_tasks_for_date(db_session, sample_account_id, today)]
        assert titles == ["Today 1", "Today 2"]

    def test_upcoming_excludes_past_and_completed(self, db_session, sample_account_id, today):
        use_case = CreateTaskUseCase(db_session)
        use_case.execute(sample_account_id, "Yesterday", today - timedelta(days=1))
        done = use_case.execute(sample_account_id, "Done", today)
        use_case.execute(sample_account_id, "In 3 days", today + timedelta(days=3))
        use_case.execute(sample_account_id, "Today", today)
        ToggleTaskUseCase(db_session).execute(sample_account_id, done)

        titles = [t.title for t in upcoming_tasks(db_session, sample_account_id, today)]
        assert titles == ["Today", "In 3 days"]

    def test_upcoming_limit(self, db_session, sample_account_id, today):
        use_case = CreateTaskUseCase(db_session)
        for i in range(7):
            use_case.execute(sample_account_id, f"Task {i}", today + timedelta(days=i))

        upcoming = upcoming_tasks(db_session, sample_account_id, today)
        assert len(upcoming) == 5
        assert [t.task_date for t in upcoming] == sorted(t.task_date for t in upcoming)
