"""User registration, activation and profile management."""

import logging
import math
from dataclasses import asdict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from accounts.config import Settings
from accounts.database import transaction
from accounts.exceptions import (
    EmailDeliveryError,
    InvalidTokenError,
    MailTransportError,
    NotFoundError,
    ValidationFailed,
)
from accounts.repositories.user_repository import PublicUser, UserRecord, UserRepository
from accounts.security import hash_password, random_string
from accounts.services.email import MailTransport
from accounts.services.file_storage import FileStorage

logger = logging.getLogger("accounts")

ACTIVATION_TOKEN_LENGTH = 16


class UserService:
    """Orchestrates user lifecycle operations over one database session."""

    def __init__(self, db: AsyncSession, settings: Settings, mail: MailTransport, files: FileStorage) -> None:
        self.db = db
        self.settings = settings
        self.mail = mail
        self.files = files
        self.users = UserRepository(db)

    async def register(self, username: str, email: str, password: str) -> UserRecord:
        """Create an inactive user and send the activation mail.

        The insert is committed only after the mail transport accepted the
        message. A duplicate email caught by the unique constraint is reported
        like the validation pre-check.
        """
        password_hash = await run_in_threadpool(hash_password, password, self.settings.BCRYPT_ROUNDS)
        activation_token = random_string(ACTIVATION_TOKEN_LENGTH)

        try:
            async with transaction(self.db):
                user = await self.users.create(
                    username=username,
                    email=email,
                    password_hash=password_hash,
                    activation_token=activation_token,
                )
                await self.mail.send_account_activation(email, activation_token)
        except IntegrityError:
            logger.info("Registration lost uniqueness race for %s", email)
            raise ValidationFailed({"email": "email_inuse"}) from None
        except MailTransportError as e:
            logger.warning("Activation mail to %s failed, registration rolled back: %s", email, e)
            raise EmailDeliveryError() from e

        logger.info("Registered user %d", user.id)
        return user

    async def activate(self, token: str) -> None:
        """Redeem an activation token. Raises InvalidTokenError if it matches no user."""
        async with transaction(self.db):
            user = await self.users.find_by_activation_token(token)
            if user is None:
                raise InvalidTokenError()
            await self.users.update(user.id, inactive=False, activation_token=None)
        logger.info("Activated user %d", user.id)

    async def get_users(self, page: int, size: int, authenticated_user_id: int | None = None) -> dict:
        """Return one page of active users, excluding the caller."""
        content, count = await self.users.find_and_count_active(page, size, exclude_id=authenticated_user_id)
        return {
            "content": [asdict(user) for user in content],
            "page": page,
            "size": size,
            "totalPages": math.ceil(count / size),
        }

    async def get_user(self, user_id: int) -> PublicUser:
        user = await self.users.find_active_public(user_id)
        if user is None:
            raise NotFoundError("user_not_found")
        return user

    async def update_user(self, user_id: int, username: str, image: str | None = None) -> PublicUser:
        """Apply a profile update and return the public projection.

        A new image replaces the stored file; the old file is removed first and
        is not restored if the database update fails.
        """
        async with transaction(self.db):
            user = await self.users.find_by_id(user_id)
            if user is None:
                raise NotFoundError("user_not_found")

            values: dict = {"username": username}
            if image:
                if user.image:
                    await self.files.delete_profile_image(user.image)
                values["image"] = await self.files.save_profile_image(image)
                logger.info("Replaced profile image of user %d", user_id)
            await self.users.update(user_id, **values)

        return PublicUser(id=user_id, username=username, email=user.email, image=values.get("image", user.image))

    async def delete_user(self, user_id: int) -> None:
        """Delete a user. Session tokens go with it through the foreign key cascade."""
        async with transaction(self.db):
            user = await self.users.find_by_id(user_id)
            await self.users.delete(user_id)
        if user and user.image:
            await self.files.delete_profile_image(user.image)
        logger.info("Deleted user %d", user_id)
