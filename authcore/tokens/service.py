"""Token pair issuance, refresh-token verification, rotation, and revocation."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from authcore.core.errors import CredentialStoreError
from authcore.core.settings import AuthSettings
from authcore.crypto.signer import sign_token, verify_token
from authcore.crypto.types import IdentityClaim
from authcore.tokens import access
from authcore.tokens.types import (
    CredentialStore,
    IssuedToken,
    Rotation,
    TokenPair,
    VerifyResult,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_faults(operation: str) -> Iterator[None]:
    """Turn store failures into ``CredentialStoreError`` with the cause attached."""
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Credential store %s failed: %s", operation, type(exc).__name__)
        raise CredentialStoreError() from exc


class TokenService:
    """Issues and validates tokens against one credential store.

    Access tokens are stateless. A refresh token is valid only while its exact
    string is registered in the store and its signature and expiry check out.
    """

    def __init__(self, store: CredentialStore, settings: AuthSettings) -> None:
        self._store = store
        self._settings = settings

    def issue_access_token(self, claim: IdentityClaim) -> IssuedToken:
        """Sign a short-lived access token."""
        return access.issue_access_token(claim, self._settings)

    async def issue_refresh_token(self, claim: IdentityClaim) -> IssuedToken:
        """Sign a refresh token and register it; nothing is returned unless both succeed."""
        ttl = self._settings.refresh_token_ttl
        token = sign_token(claim, self._settings.refresh_token_secret, ttl)
        with _store_faults("insert"):
            await self._store.insert(token)
        return IssuedToken(token=token, expires_in_seconds=ttl)

    async def issue_token_pair(self, claim: IdentityClaim) -> TokenPair:
        """Issue a refresh token, then an access token, for the same claim."""
        refresh_token = await self.issue_refresh_token(claim)
        access_token = self.issue_access_token(claim)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify_access_token(self, token: str | None) -> VerifyResult:
        return access.verify_access_token(token, self._settings)

    async def verify_refresh_token(self, token: str | None) -> VerifyResult:
        """Check store membership first, then signature and expiry.

        Store failures raise ``CredentialStoreError`` rather than reading as invalid.
        """
        if not token:
            return VerifyResult.invalid()
        with _store_faults("lookup"):
            registered = await self._store.exists(token)
        if not registered:
            return VerifyResult.invalid()
        claim = verify_token(token, self._settings.refresh_token_secret)
        if claim is None:
            return VerifyResult.invalid()
        return VerifyResult.of(claim)

    async def delete_refresh_token(self, token: str) -> bool:
        """Unregister a refresh token. Deleting an unknown token is not an error."""
        with _store_faults("delete"):
            return await self._store.delete(token)

    async def rotate_refresh_token(self, token: str | None) -> Rotation | None:
        """Consume a refresh token and issue a new pair in its place.

        The store delete is the single authoritative step: when two requests
        rotate the same token, only the one whose delete removed the row
        proceeds. The other gets None, as for any invalid token.
        """
        result = await self.verify_refresh_token(token)
        if not result.valid or result.claim is None or token is None:
            return None
        if not await self.delete_refresh_token(token):
            logger.warning("Refresh token was consumed by a concurrent rotation")
            return None
        pair = await self.issue_token_pair(result.claim)
        return Rotation(claim=result.claim, pair=pair)
