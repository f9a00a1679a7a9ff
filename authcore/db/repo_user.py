"""User repository: local accounts and third-party identity links."""

import logging

import uuid_utils
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.core.errors import ThirdPartyAccountError, UsernameTakenError
from authcore.crypto.password import hash_password, verify_password
from authcore.db.models_user import AuthProviderEntity, UserEntity

logger = logging.getLogger(__name__)


async def get_user_by_username(
    session: AsyncSession, username: str
) -> UserEntity | None:
    """Look up a user by username."""
    stmt = select(UserEntity).where(UserEntity.username == username)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession, username: str, password: str
) -> UserEntity:
    """Create a password-backed user."""
    if await get_user_by_username(session, username) is not None:
        raise UsernameTakenError()
    user = UserEntity(
        id=str(uuid_utils.uuid7()),
        username=username,
        password_hash=hash_password(password),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise UsernameTakenError() from exc
    return user


async def verify_credentials(
    session: AsyncSession, username: str, password: str
) -> UserEntity | None:
    """Authenticate a user by username and password.

    Raises ``ThirdPartyAccountError`` for an account that only signs in
    through an identity provider.
    """
    user = await get_user_by_username(session, username)
    if user is None:
        return None
    if user.password_hash is None:
        raise ThirdPartyAccountError()
    if not verify_password(password, user.password_hash):
        return None
    return user


async def _linked_user_id(
    session: AsyncSession, provider: str, provider_user_id: str
) -> str | None:
    stmt = select(AuthProviderEntity.user_id).where(
        AuthProviderEntity.provider == provider,
        AuthProviderEntity.provider_user_id == provider_user_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _link_identity(
    session: AsyncSession, provider: str, provider_user_id: str, email_hint: str
) -> str:
    user = await get_user_by_username(session, email_hint)
    if user is not None and user.password_hash:
        raise UsernameTakenError()
    if user is None:
        user = UserEntity(id=str(uuid_utils.uuid7()), username=email_hint)
        session.add(user)
        await session.flush()
        logger.info("Created user for %s identity", provider)

    session.add(
        AuthProviderEntity(
            id=str(uuid_utils.uuid7()),
            provider=provider,
            provider_user_id=provider_user_id,
            user_id=user.id,
        )
    )
    await session.flush()
    return user.id


async def get_or_create_user_by_provider(
    session: AsyncSession, provider: str, provider_user_id: str, email_hint: str
) -> str:
    """Return the local user id linked to a provider subject, creating it if needed.

    A new account takes the provider email as its username. An existing
    federated-only account with that username (created through another
    provider) is linked; a password account with that username is not.

    The create runs in a savepoint. When a concurrent first login for the same
    subject or email commits first, the unique constraints reject this insert;
    the savepoint is rolled back and the identity is resolved again against
    the rows the other login wrote.
    """
    user_id = await _linked_user_id(session, provider, provider_user_id)
    if user_id is not None:
        return user_id

    try:
        async with session.begin_nested():
            return await _link_identity(
                session, provider, provider_user_id, email_hint
            )
    except IntegrityError:
        logger.info("Concurrent first login for %s identity, resolving again", provider)

    user_id = await _linked_user_id(session, provider, provider_user_id)
    if user_id is not None:
        return user_id
    async with session.begin_nested():
        return await _link_identity(session, provider, provider_user_id, email_hint)
