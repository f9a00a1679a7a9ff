"""Credential store: the set of refresh tokens that are currently live."""

import hashlib
import logging

from sqlalchemy import delete, exists, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.core.errors import RefreshTokenExistsError
from authcore.db.models_token import RefreshTokenEntity

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """SHA-256 hash a token for database storage."""
    return hashlib.sha256(token.encode()).hexdigest()


class RefreshTokenStore:
    """Refresh-token rows behind one request-scoped session.

    Every call goes to the database; nothing is cached between calls, so a
    delete committed by a concurrent request is observed by the next
    ``exists``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, token: str) -> bool:
        """Return True if this exact token is registered."""
        stmt = select(
            exists().where(RefreshTokenEntity.token_hash == hash_token(token))
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar())

    async def insert(self, token: str) -> None:
        """Register a token; registering the same token twice is a fault."""
        stmt = insert(RefreshTokenEntity).values(token_hash=hash_token(token))
        try:
            await self._session.execute(stmt)
        except IntegrityError as exc:
            logger.error("Refresh token collision on insert")
            raise RefreshTokenExistsError() from exc

    async def delete(self, token: str) -> bool:
        """Remove a token. Returns whether a row was actually removed."""
        stmt = (
            delete(RefreshTokenEntity)
            .where(RefreshTokenEntity.token_hash == hash_token(token))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)
