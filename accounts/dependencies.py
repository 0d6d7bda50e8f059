"""FastAPI dependencies: services, locale, pagination and request authentication."""

import base64
import binascii
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.config import Settings, get_settings
from accounts.database import get_db
from accounts.exceptions import ForbiddenError
from accounts.i18n import Translator, resolve_locale
from accounts.services.auth import AuthService
from accounts.services.email import MailTransport
from accounts.services.file_storage import FileStorage
from accounts.services.user import UserService


@dataclass
class CurrentUser:
    """Authenticated user context."""

    id: int
    username: str | None
    email: str
    image: str | None


@dataclass
class Pagination:
    page: int
    size: int


def get_translator(request: Request) -> Translator:
    """Resolve the request locale once from Accept-Language."""
    return Translator(resolve_locale(request.headers.get("Accept-Language")))


def get_mail_transport(settings: Settings = Depends(get_settings)) -> MailTransport:
    return MailTransport(settings)


def get_file_storage(settings: Settings = Depends(get_settings)) -> FileStorage:
    return FileStorage(settings)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mail: MailTransport = Depends(get_mail_transport),
    files: FileStorage = Depends(get_file_storage),
) -> UserService:
    return UserService(db, settings, mail, files)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, settings)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def get_pagination(
    page: str | None = None,
    size: str | None = None,
    settings: Settings = Depends(get_settings),
) -> Pagination:
    """Parse page/size query values, falling back to defaults for anything out of range."""
    page_number = _parse_int(page)
    if page_number is None or page_number < 0:
        page_number = 0

    page_size = _parse_int(size)
    if page_size is None or page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        page_size = settings.DEFAULT_PAGE_SIZE

    return Pagination(page=page_number, size=page_size)


def _decode_basic(credentials: str) -> tuple[str, str] | None:
    try:
        decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    email, separator, password = decoded.partition(":")
    if not separator:
        return None
    return email, password


def get_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_authenticated_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser | None:
    """Resolve Basic or Bearer credentials to an active user. Returns None if absent or invalid."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    scheme, _, credentials = auth_header.partition(" ")
    scheme = scheme.lower()
    if scheme == "basic":
        pair = _decode_basic(credentials.strip())
        if pair is None:
            return None
        user = await auth.authenticate(*pair)
    elif scheme == "bearer":
        user = await auth.resolve_token(credentials.strip())
    else:
        return None

    if user is None or user.inactive:
        return None
    return CurrentUser(id=user.id, username=user.username, email=user.email, image=user.image)


def require_user(user: CurrentUser | None, user_id: str, message_key: str) -> CurrentUser:
    """Only the account owner may act on it. Does not reveal why a request was refused.

    ``user_id`` is the raw path segment, so a malformed id is refused like any other mismatch.
    """
    if user is None or str(user.id) != user_id:
        raise ForbiddenError(message_key)
    return user
