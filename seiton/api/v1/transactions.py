"""
Transaction API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from seiton.api.deps import get_current_user, get_db, require_feature
from seiton.application.transactions import (
    CreateTransactionUseCase, TransactionValidationError, get_totals, list_transactions,
)
from seiton.domain.subscription import FEATURE_FINANCE
from seiton.infrastructure.db.models import TransactionFeed, User


router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


# === Request models ===

class CreateTransactionRequest(BaseModel):
    tx_type: str  # income, expense
    amount: str  # Decimal as string
    description: str
    category: str | None = None
    occurred_at: datetime | None = None


class TransactionResponse(BaseModel):
    transaction_id: int
    tx_type: str
    amount: str
    description: str
    category: str | None = None
    occurred_at: datetime


class TransactionListResponse(BaseModel):
    income: str
    expense: str
    balance: str
    items: list[TransactionResponse]


def transaction_response(tx: TransactionFeed) -> TransactionResponse:
    return TransactionResponse(
        transaction_id=tx.transaction_id,
        tx_type=tx.tx_type,
        amount=str(tx.amount),
        description=tx.description,
        category=tx.category,
        occurred_at=tx.occurred_at,
    )


# === Endpoints ===

@router.get("", response_model=TransactionListResponse)
def get_transactions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_feature(db, user, FEATURE_FINANCE)
    totals = get_totals(db, user.id)
    return TransactionListResponse(
        income=str(totals["income"]),
        expense=str(totals["expense"]),
        balance=str(totals["balance"]),
        items=[transaction_response(tx) for tx in list_transactions(db, user.id)],
    )


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    req: CreateTransactionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_feature(db, user, FEATURE_FINANCE)
    try:
        transaction_id = CreateTransactionUseCase(db).execute(
            account_id=user.id,
            tx_type=req.tx_type,
            amount=req.amount,
            description=req.description,
            category=req.category,
            occurred_at=req.occurred_at,
            actor_user_id=user.id,
        )
    except TransactionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    tx = db.query(TransactionFeed).filter(
        TransactionFeed.transaction_id == transaction_id,
        TransactionFeed.account_id == user.id,
    ).first()
    if not tx:
        raise HTTPException(status_code=500, detail="Transaction creation failed")
    return transaction_response(tx)
