"""
SQLAlchemy ORM models (identity, event log, read models)
"""
from decimal import Decimal
from datetime import date as date_type
from sqlalchemy import String, DateTime, Integer, SmallInteger, TIMESTAMP, Date, func, false, Boolean, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from seiton.domain.inventory import is_low_stock
from seiton.infrastructure.db.session import Base


class User(Base):
    """
    Identity record: credentials only, everything else lives on the profile
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    last_seen_at: Mapped[DateTime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )


class EventLog(Base):
    """
    Event log - source of truth

    Every user command is stored as one immutable event.
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True
    )
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


# ============================================================================
# Read Models (projections built from events)
# ============================================================================


class ProjectorCheckpoint(Base):
    """
    Infrastructure: Track projector progress for idempotent event processing
    """
    __tablename__ = "projector_checkpoints"

    id: Mapped[int] = mapped_column(primary_key=True)
    projector_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    last_event_id: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint('projector_name', 'account_id', name='uq_projector_account'),
    )


class UserProfileModel(Base):
    """
    Read model: personal data, gamification counters and plan (built by ProfileProjector)
    """
    __tablename__ = "user_profiles"

    user_id: Mapped[int] = mapped_column(primary_key=True)

    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    completed_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_task_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    unlocked_achievements: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    subscription_plan: Mapped[str] = mapped_column(String(16), nullable=False, default="basic", server_default="basic")
    subscription_start_date: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    subscription_end_date: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    schema_version: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1, server_default="1")
    # Last event applied to this row; replays of older events are ignored
    last_event_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class PointsEntry(Base):
    """Read model: every change of total_points with the event that caused it."""
    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    source_event_id: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("source_event_id", "reason", name="uq_points_ledger_event_reason"),
    )


class TaskModel(Base):
    """Read model: planner tasks (built by TasksProjector)"""
    __tablename__ = "tasks"

    task_id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    task_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default="10")
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    completed_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_tasks_account_date", "account_id", "task_date"),
    )


class TransactionFeed(Base):
    """
    Read model: income/expense feed (built by TransactionsFeedProjector)
    """
    __tablename__ = "transactions_feed"

    transaction_id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    tx_type: Mapped[str] = mapped_column(String(16), nullable=False)  # income, expense
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)

    occurred_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class InventoryItemModel(Base):
    """Read model: stock items (built by InventoryProjector)"""
    __tablename__ = "inventory_items"

    item_id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=3), nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False, server_default="kg")
    min_quantity: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=3), nullable=False, server_default="0")
    created_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    @property
    def is_low_stock(self) -> bool:
        return is_low_stock(self.quantity, self.min_quantity)
