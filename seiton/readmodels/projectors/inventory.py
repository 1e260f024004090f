"""InventoryProjector - builds inventory_items read model from events"""
from decimal import Decimal
from datetime import datetime

from seiton.readmodels.projectors.base import BaseProjector
from seiton.infrastructure.db.models import InventoryItemModel, EventLog


class InventoryProjector(BaseProjector):
    name = "inventory"
    event_types = ("inventory_item_created",)

    def handle_event(self, event: EventLog) -> None:
        payload = event.payload_json
        self.db.flush()
        if self.db.query(InventoryItemModel).filter(
            InventoryItemModel.item_id == payload["item_id"]
        ).first():
            return
        self.db.add(InventoryItemModel(
            item_id=payload["item_id"],
            account_id=payload["account_id"],
            name=payload["name"],
            quantity=Decimal(payload["quantity"]),
            unit=payload["unit"],
            min_quantity=Decimal(payload["min_quantity"]),
            created_at=datetime.fromisoformat(payload["created_at"]),
        ))

    def reset(self, account_id: int) -> None:
        self.db.query(InventoryItemModel).filter(InventoryItemModel.account_id == account_id).delete()
        super().reset(account_id)
