"""Income and expense entries - transaction_created payloads"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

TX_INCOME = "income"
TX_EXPENSE = "expense"
TX_TYPES = (TX_INCOME, TX_EXPENSE)


class Transaction:
    @staticmethod
    def create(
        account_id: int,
        transaction_id: int,
        tx_type: str,
        amount: Decimal,
        description: str,
        category: Optional[str],
        occurred_at: datetime,
    ) -> Dict[str, Any]:
        # Decimal goes into JSON as text so no precision is lost
        return {
            "transaction_id": transaction_id,
            "account_id": account_id,
            "tx_type": tx_type,
            "amount": str(amount),
            "description": description,
            "category": category,
            "occurred_at": occurred_at.isoformat(),
        }
