"""
Profile use cases - lazy creation, personal data, rebuild.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seiton.domain.profile import PERSONAL_FIELDS, Profile, UserProfile
from seiton.infrastructure.db.models import UserProfileModel
from seiton.infrastructure.eventlog.repository import EventLogRepository
from seiton.readmodels.projectors.profile import ProfileProjector

logger = logging.getLogger(__name__)

_FIELD_MAX_LENGTH = {
    "display_name": 255,
    "phone": 64,
    "address": 255,
    "city": 128,
    "state": 64,
    "zip_code": 32,
}


class ProfileValidationError(ValueError):
    pass


def load_profile(db: Session, user_id: int) -> UserProfile | None:
    """Read and validate the stored profile, without creating it."""
    row = db.query(UserProfileModel).filter(UserProfileModel.user_id == user_id).first()
    if row is None:
        return None
    return UserProfile.model_validate(row)


class EnsureProfileUseCase:
    """
    Return the user's profile, creating it on first access.

    Creation goes through the event log with a fixed idempotency key, so two
    concurrent first requests still produce exactly one profile.
    """

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, user_id: int) -> UserProfile:
        # Catch up with events appended but not yet projected
        ProfileProjector(self.db).run(user_id)

        profile = load_profile(self.db, user_id)
        if profile is not None:
            return profile

        try:
            self.event_repo.append_event(
                account_id=user_id,
                event_type="profile_created",
                payload=Profile.create(user_id),
                actor_user_id=user_id,
                idempotency_key=f"profile-created-{user_id}",
            )
            self.db.commit()
            logger.info("Profile created for user_id=%s", user_id)
        except IntegrityError:
            # Someone else created it first
            self.db.rollback()

        ProfileProjector(self.db).run(user_id)
        return load_profile(self.db, user_id)


class UpdateProfileDataUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, user_id: int, actor_user_id: int | None = None, **changes) -> UserProfile:
        unknown = set(changes) - set(PERSONAL_FIELDS)
        if unknown:
            raise ProfileValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            if value and len(str(value).strip()) > _FIELD_MAX_LENGTH[key]:
                raise ProfileValidationError(f"{key} is too long")

        EnsureProfileUseCase(self.db).execute(user_id)

        self.event_repo.append_event(
            account_id=user_id,
            event_type="profile_updated",
            payload=Profile.update(**changes),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        ProfileProjector(self.db).run(user_id)
        return load_profile(self.db, user_id)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: int) -> UserProfile:
        return EnsureProfileUseCase(self.db).execute(user_id)

    def rebuild(self, user_id: int) -> int:
        """
        Rebuild the profile from scratch by replaying the log.

        Returns the number of events processed.
        """
        projector = ProfileProjector(self.db)
        projector.reset(user_id)
        self.db.flush()
        return projector.run(user_id)
