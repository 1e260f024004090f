"""
Identity - password hashing, sign-up, sign-in and credential changes
"""
import logging
from datetime import datetime, timezone

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seiton.infrastructure.db.models import User
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.utils.validation import is_valid_email, normalize_email

logger = logging.getLogger(__name__)

# pbkdf2_sha256 - pure python, no native deps
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PASSWORD_MIN_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password"


class AuthError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def _check_password_strength(password: str) -> None:
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise AuthError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def sign_up(self, email: str, password: str) -> User:
        email = normalize_email(email or "")
        if not is_valid_email(email):
            raise AuthError("Invalid email address")
        _check_password_strength(password)
        if get_user_by_email(self.db, email):
            raise AuthError("An account with this email already exists")

        user = User(email=email, password_hash=hash_password(password))
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise AuthError("An account with this email already exists")

        self.event_repo.append_event(
            account_id=user.id,
            event_type="user_signed_up",
            payload={"email": email},
            actor_user_id=user.id,
        )
        self.db.commit()
        logger.info("User signed up user_id=%s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> User:
        user = get_user_by_email(self.db, email or "")
        # Same message for unknown email and wrong password
        if not user or not verify_password(password or "", user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

        now = datetime.now(timezone.utc)
        user.last_seen_at = now
        self.event_repo.append_event(
            account_id=user.id,
            event_type="user_logged_in",
            payload={"email": user.email},
            occurred_at=now,
            actor_user_id=user.id,
        )
        self.db.commit()
        return user

    def _reauthenticate(self, user_id: int, current_password: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise AuthError("User not found")
        if not verify_password(current_password or "", user.password_hash):
            raise AuthError("Current password is incorrect")
        return user

    def change_email(self, user_id: int, current_password: str, new_email: str) -> User:
        user = self._reauthenticate(user_id, current_password)
        new_email = normalize_email(new_email or "")
        if not is_valid_email(new_email):
            raise AuthError("Invalid email address")
        if new_email == user.email:
            return user
        if get_user_by_email(self.db, new_email):
            raise AuthError("An account with this email already exists")

        old_email = user.email
        user.email = new_email
        self.event_repo.append_event(
            account_id=user.id,
            event_type="user_email_changed",
            payload={"old_email": old_email, "new_email": new_email},
            actor_user_id=user.id,
        )
        self.db.commit()
        logger.info("Email changed user_id=%s", user.id)
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str, confirm: str) -> None:
        user = self._reauthenticate(user_id, current_password)
        if new_password != confirm:
            raise AuthError("Passwords do not match")
        _check_password_strength(new_password)

        user.password_hash = hash_password(new_password)
        self.event_repo.append_event(
            account_id=user.id,
            event_type="user_password_changed",
            payload={},
            actor_user_id=user.id,
        )
        self.db.commit()
        logger.info("Password changed user_id=%s", user.id)
