"""
Plans and subscription API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from seiton.api.deps import get_current_user, get_db, local_now
from seiton.application.profile import ProfileService
from seiton.application.subscription import ChangePlanUseCase, SubscriptionValidationError, build_plan_view
from seiton.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1", tags=["subscription"])


class ChangePlanRequest(BaseModel):
    plan: str
    months: int = 1


@router.get("/plans")
def get_plans(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Available plans, the current one and feature access"""
    profile = ProfileService(db).get_profile(user.id)
    return build_plan_view(profile, local_now())


@router.post("/subscription")
def change_plan(
    req: ChangePlanRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        profile = ChangePlanUseCase(db).execute(user.id, req.plan, months=req.months, actor_user_id=user.id)
    except SubscriptionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return build_plan_view(profile, local_now())
