"""
TransactionsFeedProjector - income and expense rows for the finance page.

transaction_created is the only event; the feed row is keyed by the
transaction_id carried in the payload, so a replay never duplicates it.
"""
from decimal import Decimal
from datetime import datetime

from seiton.readmodels.projectors.base import BaseProjector
from seiton.infrastructure.db.models import TransactionFeed, EventLog


class TransactionsFeedProjector(BaseProjector):
    name = "transactions_feed"
    event_types = ("transaction_created",)

    def handle_event(self, event: EventLog) -> None:
        data = event.payload_json
        self.db.flush()
        already_projected = self.db.query(TransactionFeed.transaction_id).filter(
            TransactionFeed.transaction_id == data["transaction_id"]
        ).first()
        if already_projected:
            return

        self.db.add(TransactionFeed(
            transaction_id=data["transaction_id"],
            account_id=data["account_id"],
            tx_type=data["tx_type"],
            amount=Decimal(data["amount"]),
            description=data.get("description", ""),
            category=data.get("category"),
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
        ))

    def reset(self, account_id: int) -> None:
        self.db.query(TransactionFeed).filter(TransactionFeed.account_id == account_id).delete()
        super().reset(account_id)
