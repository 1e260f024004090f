"""
Tests for profile creation, personal data and rebuild.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from seiton.application.profile import (
    EnsureProfileUseCase,
    ProfileService,
    ProfileValidationError,
    UpdateProfileDataUseCase,
)
from seiton.domain.profile import Profile
from seiton.infrastructure.eventlog.repository import EventLogRepository


class TestEnsureProfile:
    def test_creates_profile_on_first_access(self, db_session, sample_account_id):
        profile = EnsureProfileUseCase(db_session).execute(sample_account_id)

        assert profile.user_id == sample_account_id
        assert profile.total_points == 0
        assert profile.level == 1
        assert profile.subscription_plan == "basic"
        assert profile.created_at is not None

    def test_second_access_does_not_create_again(self, db_session, sample_account_id):
        service = ProfileService(db_session)
        service.get_profile(sample_account_id)
        service.get_profile(sample_account_id)

        repo = EventLogRepository(db_session)
        assert repo.count_events(sample_account_id, ["profile_created"]) == 1

    def test_creation_key_is_unique(self, db_session, sample_account_id):
        EnsureProfileUseCase(db_session).execute(sample_account_id)

        with pytest.raises(IntegrityError):
            EventLogRepository(db_session).append_event(
                account_id=sample_account_id,
                event_type="profile_created",
                payload=Profile.create(sample_account_id),
                idempotency_key=f"profile-created-{sample_account_id}",
            )
        db_session.rollback()


class TestUpdateProfileData:
    def test_sets_fields(self, db_session, sample_account_id):
        profile = UpdateProfileDataUseCase(db_session).execute(
            sample_account_id, display_name="Ana Lima", city="Recife", zip_code="50000-000",
        )
        assert profile.display_name == "Ana Lima"
        assert profile.city == "Recife"
        assert profile.zip_code == "50000-000"
        assert profile.phone is None

    def test_sparse_update_keeps_other_fields(self, db_session, sample_account_id):
        use_case = UpdateProfileDataUseCase(db_session)
        use_case.execute(sample_account_id, display_name="Ana", phone="81 9999-0000")
        profile = use_case.execute(sample_account_id, phone="")

        assert profile.display_name == "Ana"
        assert profile.phone is None

    def test_unknown_field_rejected(self, db_session, sample_account_id):
        with pytest.raises(ProfileValidationError):
            UpdateProfileDataUseCase(db_session).execute(sample_account_id, total_points=1000)

    def test_too_long_value_rejected(self, db_session, sample_account_id):
        with pytest.raises(ProfileValidationError):
            UpdateProfileDataUseCase(db_session).execute(sample_account_id, state="x" * 100)


def test_rebuild_replays_profile(db_session, sample_account_id):
    UpdateProfileDataUseCase(db_session).execute(sample_account_id, display_name="Ana")
    service = ProfileService(db_session)
    before = service.get_profile(sample_account_id)

    processed = service.rebuild(sample_account_id)
    after = service.get_profile(sample_account_id)

    assert processed == 2
    assert after.display_name == before.display_name
    assert after.total_points == before.total_points
