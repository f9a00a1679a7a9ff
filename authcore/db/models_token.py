"""SQLAlchemy model for live refresh tokens."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authcore.db.base import BaseEntity


class RefreshTokenEntity(BaseEntity):
    """A refresh token that has been issued and not yet rotated or revoked."""

    __tablename__ = "refresh_tokens"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
