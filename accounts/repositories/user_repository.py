"""User persistence."""

from dataclasses import dataclass

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.models.user import User


@dataclass(frozen=True)
class UserRecord:
    """Full user row."""

    id: int
    username: str | None
    email: str
    password: str
    inactive: bool
    activation_token: str | None
    image: str | None


@dataclass(frozen=True)
class PublicUser:
    """Fields of a user that are safe to show to other clients."""

    id: int
    username: str | None
    email: str
    image: str | None


PUBLIC_COLUMNS = (User.id, User.username, User.email, User.image)


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        email=user.email,
        password=user.password,
        inactive=user.inactive,
        activation_token=user.activation_token,
        image=user.image,
    )


class UserRepository:
    """CRUD over the ``users`` table. Callers own the transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        activation_token: str | None,
        inactive: bool = True,
    ) -> UserRecord:
        """Insert a user and flush to obtain its id. Raises IntegrityError on a duplicate email."""
        user = User(
            username=username,
            email=email,
            password=password_hash,
            activation_token=activation_token,
            inactive=inactive,
        )
        self.session.add(user)
        await self.session.flush()
        return _to_record(user)

    async def find_by_id(self, user_id: int) -> UserRecord | None:
        user = await self.session.get(User, user_id)
        return _to_record(user) if user else None

    async def find_by_email(self, email: str) -> UserRecord | None:
        result = await self.session.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        return _to_record(user) if user else None

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.email == email).limit(1))
        return result.first() is not None

    async def find_by_activation_token(self, token: str) -> UserRecord | None:
        result = await self.session.execute(select(User).where(User.activation_token == token))
        user = result.scalars().first()
        return _to_record(user) if user else None

    async def find_active_public(self, user_id: int) -> PublicUser | None:
        result = await self.session.execute(
            select(*PUBLIC_COLUMNS).where(User.id == user_id, User.inactive.is_(False))
        )
        row = result.first()
        return PublicUser(*row) if row else None

    async def find_and_count_active(
        self, page: int, size: int, exclude_id: int | None = None
    ) -> tuple[list[PublicUser], int]:
        """Return one page of active users plus the total number of matches."""
        conditions = [User.inactive.is_(False)]
        if exclude_id is not None:
            conditions.append(User.id != exclude_id)

        count = await self.session.scalar(select(func.count(User.id)).where(*conditions))
        result = await self.session.execute(
            select(*PUBLIC_COLUMNS).where(*conditions).order_by(User.id).limit(size).offset(page * size)
        )
        return [PublicUser(*row) for row in result.all()], count or 0

    async def update(self, user_id: int, **values) -> None:
        await self.session.execute(update(User).where(User.id == user_id).values(**values))

    async def delete(self, user_id: int) -> None:
        await self.session.execute(delete(User).where(User.id == user_id))
