"""
Tests for transactions and inventory use cases.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from seiton.application.inventory import (
    CreateInventoryItemUseCase,
    InventoryValidationError,
    count_low_stock,
    list_inventory,
)
from seiton.application.transactions import (
    CreateTransactionUseCase,
    TransactionValidationError,
    get_monthly_series,
    get_totals,
    list_transactions,
)
from seiton.infrastructure.db.models import TransactionFeed


class TestCreateTransaction:
    def test_comma_amount_is_normalized(self, db_session, sample_account_id):
        tx_id = CreateTransactionUseCase(db_session).execute(
            sample_account_id, "income", "100,50", "Catering order", category="Sales",
        )
        tx = db_session.query(TransactionFeed).filter(TransactionFeed.transaction_id == tx_id).one()
        assert tx.amount == Decimal("100.50")
        assert tx.tx_type == "income"
        assert tx.category == "Sales"

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "10.555"])
    def test_invalid_amounts(self, db_session, sample_account_id, amount):
        with pytest.raises(TransactionValidationError):
            CreateTransactionUseCase(db_session).execute(sample_account_id, "expense", amount, "Gas")

    def test_unknown_type(self, db_session, sample_account_id):
        with pytest.raises(TransactionValidationError):
            CreateTransactionUseCase(db_session).execute(sample_account_id, "transfer", "10", "Move")

    def test_description_required(self, db_session, sample_account_id):
        with pytest.raises(TransactionValidationError):
            CreateTransactionUseCase(db_session).execute(sample_account_id, "income", "10", "  ")

    def test_blank_category_stored_as_none(self, db_session, sample_account_id):
        tx_id = CreateTransactionUseCase(db_session).execute(
            sample_account_id, "expense", "10", "Gas", category="  ",
        )
        tx = db_session.query(TransactionFeed).filter(TransactionFeed.transaction_id == tx_id).one()
        assert tx.category is None


def test_totals_and_listing(db_session, sample_account_id):
    use_case = CreateTransactionUseCase(db_session)
    use_case.execute(sample_account_id, "income", "1000", "Sales")
    use_case.execute(sample_account_id, "income", "250.25", "Sales")
    use_case.execute(sample_account_id, "expense", "300", "Supplies")
    use_case.execute(2, "income", "999", "Other account")

    totals = get_totals(db_session, sample_account_id)
    assert totals == {
        "income": Decimal("1250.25"),
        "expense": Decimal("300"),
        "balance": Decimal("950.25"),
    }
    assert len(list_transactions(db_session, sample_account_id)) == 3


def test_totals_for_empty_account(db_session, sample_account_id):
    assert get_totals(db_session, sample_account_id)["balance"] == Decimal("0")


def test_monthly_series_has_six_months_with_zeros(db_session, sample_account_id, local_tz):
    use_case = CreateTransactionUseCase(db_session)
    use_case.execute(sample_account_id, "income", "500", "March sales",
                     occurred_at=datetime(2026, 3, 15, 12, 0, tzinfo=local_tz))
    use_case.execute(sample_account_id, "expense", "120", "March rent",
                     occurred_at=datetime(2026, 3, 20, 12, 0, tzinfo=local_tz))
    use_case.execute(sample_account_id, "income", "80", "January sales",
                     occurred_at=datetime(2026, 1, 5, 12, 0, tzinfo=local_tz))
    use_case.execute(sample_account_id, "income", "999", "Too old",
                     occurred_at=datetime(2025, 6, 5, 12, 0, tzinfo=local_tz))

    series = get_monthly_series(db_session, sample_account_id, datetime(2026, 3, 31).date(), tz=local_tz)

    assert [m["month"] for m in series] == [
        "2025-10", "2025-11", "2025-12", "2026-01", "2026-02", "2026-03",
    ]
    by_month = {m["month"]: m for m in series}
    assert by_month["2026-03"]["income"] == Decimal("500")
    assert by_month["2026-03"]["expense"] == Decimal("120")
    assert by_month["2026-01"]["income"] == Decimal("80")
    assert by_month["2026-02"]["income"] == Decimal("0")
    assert sum(m["income"] for m in series) == Decimal("580")


class TestInventory:
    def test_create_item(self, db_session, sample_account_id):
        CreateInventoryItemUseCase(db_session).execute(
            sample_account_id, "Flour", "12,5", unit="KG", min_quantity="5",
        )
        items = list_inventory(db_session, sample_account_id)
        assert len(items) == 1
        assert items[0].quantity == Decimal("12.5")
        assert items[0].unit == "kg"
        assert items[0].is_low_stock is False

    def test_low_stock_at_or_below_minimum(self, db_session, sample_account_id):
        use_case = CreateInventoryItemUseCase(db_session)
        use_case.execute(sample_account_id, "Eggs", "6", unit="un", min_quantity="6")
        use_case.execute(sample_account_id, "Milk", "1", unit="l", min_quantity="2")
        use_case.execute(sample_account_id, "Sugar", "10", unit="kg", min_quantity="2")

        assert count_low_stock(list_inventory(db_session, sample_account_id)) == 2

    def test_minimum_defaults_to_zero(self, db_session, sample_account_id):
        CreateInventoryItemUseCase(db_session).execute(sample_account_id, "Salt", "1")
        assert list_inventory(db_session, sample_account_id)[0].min_quantity == Decimal("0")

    @pytest.mark.parametrize("kwargs", [
        {"name": "", "quantity": "1"},
        {"name": "Oil", "quantity": ""},
        {"name": "Oil", "quantity": "-1"},
        {"name": "Oil", "quantity": "1", "unit": "barrel"},
        {"name": "Oil", "quantity": "1", "min_quantity": "-2"},
    ])
    def test_validation(self, db_session, sample_account_id, kwargs):
        with pytest.raises(InventoryValidationError):
            CreateInventoryItemUseCase(db_session).execute(sample_account_id, **kwargs)
