"""SQLAlchemy models."""

from accounts.models.token import Token
from accounts.models.user import User

__all__ = ["User", "Token"]
