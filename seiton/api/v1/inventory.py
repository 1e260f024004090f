"""
Inventory API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from seiton.api.deps import get_current_user, get_db, require_feature
from seiton.application.inventory import CreateInventoryItemUseCase, InventoryValidationError, list_inventory
from seiton.domain.subscription import FEATURE_FINANCE
from seiton.infrastructure.db.models import InventoryItemModel, User


router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


class CreateItemRequest(BaseModel):
    name: str
    quantity: str
    unit: str = "kg"
    min_quantity: str | None = None


class ItemResponse(BaseModel):
    item_id: int
    name: str
    quantity: str
    unit: str
    min_quantity: str
    low_stock: bool


def item_response(item: InventoryItemModel) -> ItemResponse:
    return ItemResponse(
        item_id=item.item_id,
        name=item.name,
        quantity=str(item.quantity),
        unit=item.unit,
        min_quantity=str(item.min_quantity),
        low_stock=item.is_low_stock,
    )


@router.get("", response_model=list[ItemResponse])
def get_inventory(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_feature(db, user, FEATURE_FINANCE)
    return [item_response(i) for i in list_inventory(db, user.id)]


@router.post("", response_model=ItemResponse, status_code=201)
def create_item(
    req: CreateItemRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_feature(db, user, FEATURE_FINANCE)
    try:
        item_id = CreateInventoryItemUseCase(db).execute(
            account_id=user.id,
            name=req.name,
            quantity=req.quantity,
            unit=req.unit,
            min_quantity=req.min_quantity,
            actor_user_id=user.id,
        )
    except InventoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    item = db.query(InventoryItemModel).filter(
        InventoryItemModel.item_id == item_id,
        InventoryItemModel.account_id == user.id,
    ).first()
    if not item:
        raise HTTPException(status_code=500, detail="Item creation failed")
    return item_response(item)
