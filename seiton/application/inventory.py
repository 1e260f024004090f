"""Inventory use cases - stock items with a low-stock threshold"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from seiton.domain.inventory import UNITS, InventoryItem
from seiton.infrastructure.db.models import InventoryItemModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.inventory import InventoryProjector
from seiton.utils.validation import parse_amount

logger = logging.getLogger(__name__)


class InventoryValidationError(ValueError):
    pass


def _quantity(value, label: str, required: bool) -> Decimal:
    text = "" if value is None else str(value).strip()
    if not text:
        if required:
            raise InventoryValidationError(f"{label} is required")
        return Decimal("0")
    try:
        quantity = parse_amount(text, max_decimal_places=3)
    except ValueError as e:
        raise InventoryValidationError(f"{label}: {e}")
    if quantity < 0:
        raise InventoryValidationError(f"{label} cannot be negative")
    return quantity


class CreateInventoryItemUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        account_id: int,
        name: str,
        quantity,
        unit: str = "kg",
        min_quantity=None,
        actor_user_id: int | None = None,
    ) -> int:
        name = (name or "").strip()
        if not name:
            raise InventoryValidationError("Item name is required")
        if len(name) > 255:
            raise InventoryValidationError("Item name is too long")
        unit = (unit or "kg").strip().lower()
        if unit not in UNITS:
            raise InventoryValidationError(f"Unit must be one of: {', '.join(UNITS)}")

        qty = _quantity(quantity, "Quantity", required=True)
        min_qty = _quantity(min_quantity, "Minimum quantity", required=False)

        item_id = self.event_repo.append_creation_event(
            account_id=account_id,
            event_type="inventory_item_created",
            build_payload=lambda new_id: InventoryItem.create(account_id, new_id, name, qty, unit, min_qty),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        InventoryProjector(self.db).run(account_id)
        return item_id


def list_inventory(db: Session, account_id: int) -> list[InventoryItemModel]:
    return (
        db.query(InventoryItemModel)
        .filter(InventoryItemModel.account_id == account_id)
        .order_by(InventoryItemModel.name.asc(), InventoryItemModel.item_id.asc())
        .all()
    )


def count_low_stock(items: list[InventoryItemModel]) -> int:
    return sum(1 for item in items if item.is_low_stock)
