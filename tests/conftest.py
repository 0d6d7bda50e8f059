"""Pytest configuration and fixtures."""

import base64

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from accounts.config import Settings, get_settings
from accounts.database import Base, build_engine, build_session_factory
from accounts.dependencies import get_mail_transport
from accounts.exceptions import MailTransportError
from accounts.models import Token, User
from accounts.rate_limit import limiter
from accounts.security import hash_password
from accounts.services.file_storage import FileStorage

PASSWORD = "P4ssword"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")


def basic_auth(email: str, password: str) -> dict:
    encoded = base64.b64encode(f"{email}:{password}".encode()).decode("ascii")
    return {"Authorization": f"Basic {encoded}"}


class FakeMailTransport:
    """Records activation mails instead of talking to an SMTP server."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send_account_activation(self, email: str, token: str) -> None:
        if self.fail:
            raise MailTransportError("Connection refused")
        self.sent.append((email, token))


@pytest.fixture(name="settings")
def settings_fixture(tmp_path) -> Settings:
    """Settings pointing uploads at a temporary directory."""
    settings = Settings()
    settings.UPLOAD_DIR = str(tmp_path / "upload")
    settings.PROFILE_DIR = "profile"
    settings.BCRYPT_ROUNDS = 4
    return settings


@pytest.fixture(name="session_factory")
async def session_factory_fixture(tmp_path):
    """Create a throwaway SQLite database with the full schema."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture(name="mail")
def mail_fixture() -> FakeMailTransport:
    return FakeMailTransport()


@pytest.fixture(name="client")
async def client_fixture(session_factory, settings: Settings, mail: FakeMailTransport):
    """Async test client wired to the test database, settings and fake mail transport."""
    from main import app

    app.state.session_factory = session_factory
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mail_transport] = lambda: mail
    FileStorage(settings).create_folders()
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="add_user")
def add_user_fixture(session_factory):
    """Insert a user directly. Returns the new id."""

    async def _add_user(
        username: str = "user1",
        email: str = "user1@mail.com",
        password: str = PASSWORD,
        inactive: bool = False,
        image: str | None = None,
        activation_token: str | None = None,
    ) -> int:
        async with session_factory() as session:
            user = User(
                username=username,
                email=email,
                password=hash_password(password, rounds=4),
                inactive=inactive,
                image=image,
                activation_token=activation_token,
            )
            session.add(user)
            await session.commit()
            return user.id

    return _add_user


@pytest.fixture(name="fetch_users")
def fetch_users_fixture(session_factory):
    """Read all users straight from the database."""

    async def _fetch_users() -> list[User]:
        async with session_factory() as session:
            result = await session.execute(select(User).order_by(User.id))
            return list(result.scalars().all())

    return _fetch_users


@pytest.fixture(name="fetch_tokens")
def fetch_tokens_fixture(session_factory):
    """Read all session tokens straight from the database."""

    async def _fetch_tokens() -> list[Token]:
        async with session_factory() as session:
            result = await session.execute(select(Token).order_by(Token.id))
            return list(result.scalars().all())

    return _fetch_tokens
