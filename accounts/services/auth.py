"""Credential checks and session token lifecycle."""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from accounts.config import Settings
from accounts.database import transaction
from accounts.exceptions import AuthenticationFailed, ForbiddenError
from accounts.repositories.token_repository import TokenRepository
from accounts.repositories.user_repository import UserRecord, UserRepository
from accounts.security import random_string, verify_password

logger = logging.getLogger("accounts")

SESSION_TOKEN_LENGTH = 32


class AuthService:
    """Resolves Basic and Bearer credentials and issues session tokens."""

    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.token_ttl = timedelta(hours=settings.TOKEN_TTL_HOURS)
        self.users = UserRepository(db)
        self.tokens = TokenRepository(db)

    async def _check_credentials(self, email: str, password: str) -> UserRecord | None:
        user = await self.users.find_by_email(email)
        if user is None:
            return None
        if not await run_in_threadpool(verify_password, password, user.password):
            return None
        return user

    async def authenticate(self, email: str, password: str) -> UserRecord | None:
        """Resolve Basic credentials to an active user, or None."""
        user = await self._check_credentials(email, password)
        if user is None or user.inactive:
            return None
        return user

    async def login(self, email: str | None, password: str | None) -> dict:
        """Exchange email and password for a new session token."""
        if not email or not password:
            raise AuthenticationFailed()
        user = await self._check_credentials(email, password)
        if user is None:
            raise AuthenticationFailed()
        if user.inactive:
            raise ForbiddenError("inactive_authentication_failure")

        token = random_string(SESSION_TOKEN_LENGTH)
        async with transaction(self.db):
            await self.tokens.create(user.id, token, datetime.utcnow())
        logger.info("Issued session token for user %d", user.id)
        return {"id": user.id, "username": user.username, "image": user.image, "token": token}

    async def resolve_token(self, token: str) -> UserRecord | None:
        """Resolve a bearer token to its owner and refresh its last use."""
        now = datetime.utcnow()
        async with transaction(self.db):
            record = await self.tokens.find_used_since(token, now - self.token_ttl)
            if record is None:
                return None
            await self.tokens.touch(record.id, now)
            return await self.users.find_by_id(record.user_id)

    async def logout(self, token: str) -> None:
        async with transaction(self.db):
            await self.tokens.delete_token(token)

    async def delete_expired_tokens(self) -> int:
        async with transaction(self.db):
            removed = await self.tokens.delete_unused_since(datetime.utcnow() - self.token_ttl)
        if removed:
            logger.info("Removed %d expired session tokens", removed)
        return removed


async def run_token_cleanup(session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> None:
    """Delete expired session tokens every TOKEN_CLEANUP_INTERVAL_SECONDS until cancelled."""
    while True:
        await asyncio.sleep(settings.TOKEN_CLEANUP_INTERVAL_SECONDS)
        try:
            async with session_factory() as session:
                await AuthService(session, settings).delete_expired_tokens()
        except Exception:
            logger.exception("Session token cleanup failed")
