"""
Transaction use cases - income/expense entries, totals and monthly series
"""
import calendar
import logging
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from seiton.config import get_settings
from seiton.domain.transaction import TX_EXPENSE, TX_INCOME, TX_TYPES, Transaction
from seiton.infrastructure.db.models import TransactionFeed
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.transactions_feed import TransactionsFeedProjector
from seiton.utils.validation import parse_amount

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 512


class TransactionValidationError(ValueError):
    pass


class CreateTransactionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        account_id: int,
        tx_type: str,
        amount: Decimal | str,
        description: str,
        category: str | None = None,
        occurred_at: datetime | None = None,
        actor_user_id: int | None = None,
    ) -> int:
        """
        Record an income or an expense.

        Args:
            amount: Decimal or typed text ("100,50" and "100.50" are both accepted)

        Returns:
            transaction_id
        """
        tx_type = (tx_type or "").strip().lower()
        if tx_type not in TX_TYPES:
            raise TransactionValidationError("Type must be income or expense")

        try:
            normalized = parse_amount(amount)
        except ValueError as e:
            raise TransactionValidationError(str(e))
        if normalized <= 0:
            raise TransactionValidationError("Amount must be greater than zero")

        description = (description or "").strip()
        if not description:
            raise TransactionValidationError("Description is required")
        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise TransactionValidationError("Description is too long")
        category = (category or "").strip() or None

        if occurred_at is None:
            occurred_at = datetime.now(timezone.utc)
        elif occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=get_settings().tz)

        transaction_id = self.event_repo.append_creation_event(
            account_id=account_id,
            event_type="transaction_created",
            build_payload=lambda new_id: Transaction.create(
                account_id=account_id,
                transaction_id=new_id,
                tx_type=tx_type,
                amount=normalized,
                description=description,
                category=category,
                occurred_at=occurred_at,
            ),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        TransactionsFeedProjector(self.db).run(account_id)
        logger.info("Transaction created id=%s account_id=%s type=%s", transaction_id, account_id, tx_type)
        return transaction_id


def list_transactions(db: Session, account_id: int, limit: int = 50) -> list[TransactionFeed]:
    return (
        db.query(TransactionFeed)
        .filter(TransactionFeed.account_id == account_id)
        .order_by(TransactionFeed.occurred_at.desc(), TransactionFeed.transaction_id.desc())
        .limit(limit)
        .all()
    )


def get_totals(db: Session, account_id: int) -> dict[str, Decimal]:
    """Lifetime income, expense and balance for the account."""
    rows = (
        db.query(TransactionFeed.tx_type, func.sum(TransactionFeed.amount))
        .filter(TransactionFeed.account_id == account_id)
        .group_by(TransactionFeed.tx_type)
        .all()
    )
    sums = {tx_type: Decimal(str(total or 0)) for tx_type, total in rows}
    income = sums.get(TX_INCOME, Decimal("0"))
    expense = sums.get(TX_EXPENSE, Decimal("0"))
    return {"income": income, "expense": expense, "balance": income - expense}


def _month_start(year: int, month: int, tz: tzinfo) -> datetime:
    return datetime(year, month, 1, tzinfo=tz)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_monthly_series(
    db: Session,
    account_id: int,
    today: date,
    months: int = 6,
    tz: tzinfo | None = None,
) -> list[dict]:
    """
    Income and expense per calendar month, oldest first, ending with today's month.

    Months without transactions are present with zeros.
    """
    tz = tz or get_settings().tz
    first_year, first_month = _shift_month(today.year, today.month, -(months - 1))
    since = _month_start(first_year, first_month, tz)

    series: dict[tuple[int, int], dict] = {}
    for i in range(months):
        year, month = _shift_month(first_year, first_month, i)
        series[(year, month)] = {
            "month": f"{year:04d}-{month:02d}",
            "label": f"{calendar.month_abbr[month]}/{year % 100:02d}",
            "income": Decimal("0"),
            "expense": Decimal("0"),
        }

    rows = db.query(TransactionFeed).filter(
        TransactionFeed.account_id == account_id,
        TransactionFeed.occurred_at >= since,
    ).all()
    for tx in rows:
        occurred = tx.occurred_at
        if occurred.tzinfo is None:
            occurred = occurred.replace(tzinfo=timezone.utc)
        local = occurred.astimezone(tz)
        bucket = series.get((local.year, local.month))
        if bucket is None:
            continue
        bucket[tx.tx_type] += tx.amount

    return list(series.values())
