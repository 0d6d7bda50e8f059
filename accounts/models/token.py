"""Session token model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from accounts.database import Base


class Token(Base):
    """Opaque bearer token issued on login."""

    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(255), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    last_used_at = Column(DateTime, nullable=False)
