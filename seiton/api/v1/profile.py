"""
Profile API endpoints
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from seiton.api.deps import get_current_user, get_db
from seiton.application.profile import ProfileService, ProfileValidationError, UpdateProfileDataUseCase
from seiton.domain.gamification import level_progress
from seiton.domain.profile import UserProfile
from seiton.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


# === Request / response models ===

class UpdateProfileRequest(BaseModel):
    display_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class ProfileResponse(BaseModel):
    user_id: int
    email: str
    display_name: str | None
    phone: str | None
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    total_points: int
    level: int
    points_in_level: int
    points_to_next_level: int
    completed_tasks: int
    current_streak: int
    longest_streak: int
    last_task_date: date | None
    unlocked_achievements: list[str]
    subscription_plan: str
    subscription_start_date: datetime | None
    subscription_end_date: datetime | None


def profile_response(user: User, profile: UserProfile) -> ProfileResponse:
    progress = level_progress(profile.total_points)
    return ProfileResponse(
        user_id=profile.user_id,
        email=user.email,
        display_name=profile.display_name,
        phone=profile.phone,
        address=profile.address,
        city=profile.city,
        state=profile.state,
        zip_code=profile.zip_code,
        total_points=profile.total_points,
        level=profile.level,
        points_in_level=progress.points_in_level,
        points_to_next_level=progress.points_needed,
        completed_tasks=profile.completed_tasks,
        current_streak=profile.current_streak,
        longest_streak=profile.longest_streak,
        last_task_date=profile.last_task_date,
        unlocked_achievements=profile.unlocked_achievements,
        subscription_plan=profile.subscription_plan,
        subscription_start_date=profile.subscription_start_date,
        subscription_end_date=profile.subscription_end_date,
    )


# === Endpoints ===

@router.get("", response_model=ProfileResponse)
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Current user's profile (created on first access)"""
    profile = ProfileService(db).get_profile(user.id)
    return profile_response(user, profile)


@router.patch("", response_model=ProfileResponse)
def update_profile(
    req: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sparse update: only the fields sent are changed, empty strings clear them"""
    try:
        profile = UpdateProfileDataUseCase(db).execute(
            user.id, actor_user_id=user.id, **req.model_dump(exclude_unset=True)
        )
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return profile_response(user, profile)
