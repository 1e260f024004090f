"""
Tests for the tasks, transactions feed and inventory projectors, and full rebuilds.
"""
from datetime import date, datetime, timezone
from decimal import Decimal

from seiton.domain.inventory import InventoryItem
from seiton.domain.task import Task
from seiton.domain.transaction import Transaction
from seiton.infrastructure.db.models import InventoryItemModel, TaskModel, TransactionFeed, UserProfileModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.inventory import InventoryProjector
from seiton.readmodels.projectors.tasks import TasksProjector
from seiton.readmodels.projectors.transactions_feed import TransactionsFeedProjector
from seiton.readmodels.registry import build_orchestrator


def _append(db, account_id, event_type, payload):
    EventLogRepository(db).append_event(account_id=account_id, event_type=event_type, payload=payload)
    db.commit()


def test_tasks_projector_lifecycle(db_session, sample_account_id):
    day = date(2026, 3, 2)
    _append(db_session, sample_account_id, "task_created",
            Task.create(sample_account_id, 1, "Call supplier", day))
    TasksProjector(db_session).run(sample_account_id)

    task = db_session.query(TaskModel).filter(TaskModel.task_id == 1).one()
    assert task.title == "Call supplier"
    assert task.task_date == day
    assert task.points == 10
    assert task.is_completed is False

    _append(db_session, sample_account_id, "task_completed", Task.complete(1, day, 10))
    TasksProjector(db_session).run(sample_account_id)
    db_session.refresh(task)
    assert task.is_completed is True
    assert task.completed_at is not None

    _append(db_session, sample_account_id, "task_uncompleted", Task.uncomplete(1, 10))
    TasksProjector(db_session).run(sample_account_id)
    db_session.refresh(task)
    assert task.is_completed is False
    assert task.completed_at is None


def test_tasks_projector_ignores_duplicate_creation(db_session, sample_account_id):
    payload = Task.create(sample_account_id, 1, "Once", date(2026, 3, 2))
    _append(db_session, sample_account_id, "task_created", payload)
    _append(db_session, sample_account_id, "task_created", payload)
    TasksProjector(db_session).run(sample_account_id)

    assert db_session.query(TaskModel).count() == 1


def test_transactions_feed_projector(db_session, sample_account_id):
    occurred = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)
    _append(db_session, sample_account_id, "transaction_created", Transaction.create(
        account_id=sample_account_id,
        transaction_id=1,
        tx_type="expense",
        amount=Decimal("42.50"),
        description="Flour",
        category="Supplies",
        occurred_at=occurred,
    ))
    assert TransactionsFeedProjector(db_session).run(sample_account_id) == 1

    tx = db_session.query(TransactionFeed).one()
    assert tx.tx_type == "expense"
    assert tx.amount == Decimal("42.50")
    assert tx.category == "Supplies"


def test_inventory_projector_and_low_stock(db_session, sample_account_id):
    _append(db_session, sample_account_id, "inventory_item_created", InventoryItem.create(
        sample_account_id, 1, "Flour", Decimal("2"), "kg", Decimal("5"),
    ))
    _append(db_session, sample_account_id, "inventory_item_created", InventoryItem.create(
        sample_account_id, 2, "Sugar", Decimal("10"), "kg", Decimal("5"),
    ))
    InventoryProjector(db_session).run(sample_account_id)

    items = {i.name: i for i in db_session.query(InventoryItemModel).all()}
    assert items["Flour"].is_low_stock is True
    assert items["Sugar"].is_low_stock is False


def test_rebuild_all_replays_every_read_model(db_session, sample_account_id):
    day = date(2026, 3, 2)
    _append(db_session, sample_account_id, "task_created", Task.create(sample_account_id, 1, "Bake", day))
    _append(db_session, sample_account_id, "task_completed", Task.complete(1, day, 10))
    _append(db_session, sample_account_id, "inventory_item_created", InventoryItem.create(
        sample_account_id, 1, "Eggs", Decimal("12"), "un", Decimal("6"),
    ))

    orchestrator = build_orchestrator(db_session)
    first = orchestrator.run_all(sample_account_id)
    # each projector only reads the event types it handles
    assert first == {"tasks": 2, "profile": 1, "transactions_feed": 0, "inventory": 1}

    results = build_orchestrator(db_session).rebuild_all(sample_account_id)
    assert results["profile"] == 1

    profile = db_session.query(UserProfileModel).filter(UserProfileModel.user_id == sample_account_id).one()
    assert profile.total_points == 60
    assert db_session.query(TaskModel).one().is_completed is True
    assert db_session.query(InventoryItemModel).count() == 1
