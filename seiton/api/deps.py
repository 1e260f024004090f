"""
FastAPI dependencies (DB session, authentication, flash messages)
"""
from datetime import date, datetime

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from seiton.application.profile import ProfileService
from seiton.config import get_settings
from seiton.domain.subscription import has_feature_access
from seiton.infrastructure.db.models import User
from seiton.infrastructure.db.session import get_db as _get_db


# Re-export get_db
get_db = _get_db

FLASH_KEY = "_flashes"


def require_user(request: Request) -> bool:
    """
    Session authentication check for SSR pages

    Usage in routes:
        if not require_user(request):
            return RedirectResponse("/login", status_code=302)
    """
    return bool(request.session.get("user_id"))


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Current user from the session (API endpoints)

    Raises:
        HTTPException(401): not signed in, or the account is gone
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def flash(request: Request, message: str, category: str = "success") -> None:
    """Queue a one-shot message, shown on the next rendered page."""
    flashes = list(request.session.get(FLASH_KEY, []))
    flashes.append({"message": message, "category": category})
    request.session[FLASH_KEY] = flashes


def pop_flashes(request: Request) -> list[dict]:
    return request.session.pop(FLASH_KEY, [])


def local_now() -> datetime:
    return datetime.now(get_settings().tz)


def local_today() -> date:
    return local_now().date()


def require_feature(db: Session, user: User, feature: str) -> None:
    """
    Raises:
        HTTPException(403): the user's plan does not include `feature`
    """
    profile = ProfileService(db).get_profile(user.id)
    if not has_feature_access(profile, feature, local_now()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Your plan does not include {feature}"
        )
