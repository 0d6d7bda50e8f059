"""Tests for the user service outside the HTTP layer."""

import pytest

from accounts.config import Settings
from accounts.exceptions import EmailDeliveryError, InvalidTokenError, NotFoundError, ValidationFailed
from accounts.services.file_storage import FileStorage
from accounts.services.user import UserService
from conftest import FakeMailTransport


@pytest.fixture(name="make_service")
def make_service_fixture(session_factory, settings: Settings, mail: FakeMailTransport):
    storage = FileStorage(settings)
    storage.create_folders()

    def _make_service(session) -> UserService:
        return UserService(session, settings, mail, storage)

    return _make_service


class TestUserService:
    """Tests for orchestration edge cases."""

    async def test_duplicate_email_caught_by_unique_constraint(self, session_factory, make_service, add_user):
        """Registration that skipped the pre-check still fails cleanly on the store constraint."""
        await add_user()
        async with session_factory() as session:
            with pytest.raises(ValidationFailed) as exc_info:
                await make_service(session).register("user2", "user1@mail.com", "P4ssword")
        assert exc_info.value.errors == {"email": "email_inuse"}

    async def test_mail_failure_rolls_back(self, session_factory, make_service, mail: FakeMailTransport, fetch_users):
        """Mail failure leaves no user behind."""
        mail.fail = True
        async with session_factory() as session:
            with pytest.raises(EmailDeliveryError):
                await make_service(session).register("user1", "user1@mail.com", "P4ssword")
        assert await fetch_users() == []

    async def test_activate_unknown_token(self, session_factory, make_service):
        """Unknown activation tokens raise."""
        async with session_factory() as session:
            with pytest.raises(InvalidTokenError):
                await make_service(session).activate("missing")

    async def test_get_user_not_found(self, session_factory, make_service):
        """Missing users raise NotFoundError."""
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await make_service(session).get_user(42)

    async def test_update_unknown_user(self, session_factory, make_service):
        """Updating a missing user raises NotFoundError."""
        async with session_factory() as session:
            with pytest.raises(NotFoundError):
                await make_service(session).update_user(42, "user42")

    async def test_get_users_total_pages(self, session_factory, make_service, add_user):
        """Page metadata is computed from the count."""
        for i in range(5):
            await add_user(username=f"user{i}", email=f"user{i}@mail.com")
        async with session_factory() as session:
            page = await make_service(session).get_users(page=0, size=2)
        assert page["totalPages"] == 3
        assert len(page["content"]) == 2

