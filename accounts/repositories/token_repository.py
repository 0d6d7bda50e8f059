"""Session token persistence."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.models.token import Token


@dataclass(frozen=True)
class TokenRecord:
    id: int
    token: str
    user_id: int
    last_used_at: datetime


class TokenRepository:
    """Access to the ``tokens`` table. Callers own the transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user_id: int, token: str, last_used_at: datetime) -> TokenRecord:
        row = Token(token=token, user_id=user_id, last_used_at=last_used_at)
        self.session.add(row)
        await self.session.flush()
        return TokenRecord(id=row.id, token=row.token, user_id=row.user_id, last_used_at=row.last_used_at)

    async def find_used_since(self, token: str, since: datetime) -> TokenRecord | None:
        """Find a token whose last use is after ``since``."""
        result = await self.session.execute(select(Token).where(Token.token == token, Token.last_used_at > since))
        row = result.scalars().first()
        if row is None:
            return None
        return TokenRecord(id=row.id, token=row.token, user_id=row.user_id, last_used_at=row.last_used_at)

    async def touch(self, token_id: int, when: datetime) -> None:
        await self.session.execute(update(Token).where(Token.id == token_id).values(last_used_at=when))

    async def delete_token(self, token: str) -> None:
        await self.session.execute(delete(Token).where(Token.token == token))

    async def delete_unused_since(self, before: datetime) -> int:
        """Delete tokens not used since ``before``. Returns the number removed."""
        result = await self.session.execute(delete(Token).where(Token.last_used_at < before))
        return result.rowcount or 0

