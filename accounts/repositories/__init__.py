"""Repositories returning plain records instead of live ORM instances."""

from accounts.repositories.token_repository import TokenRecord, TokenRepository
from accounts.repositories.user_repository import PublicUser, UserRecord, UserRepository

__all__ = ["PublicUser", "TokenRecord", "TokenRepository", "UserRecord", "UserRepository"]
