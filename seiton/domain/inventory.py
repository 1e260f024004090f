"""Inventory item domain entity - generates events for stock items"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any

UNITS = ("kg", "g", "l", "ml", "un", "cx")


class InventoryItem:
    @staticmethod
    def create(
        account_id: int,
        item_id: int,
        name: str,
        quantity: Decimal,
        unit: str,
        min_quantity: Decimal,
    ) -> Dict[str, Any]:
        return {
            "item_id": item_id,
            "account_id": account_id,
            "name": name,
            "quantity": str(quantity),
            "unit": unit,
            "min_quantity": str(min_quantity),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }


def is_low_stock(quantity: Decimal, min_quantity: Decimal) -> bool:
    return quantity <= min_quantity
