"""Federated login: nonce-bound initiation and callback completion."""

import logging
import secrets
from collections.abc import Awaitable, Callable, Mapping

from authcore.core.errors import (
    ClientNotInitializedError,
    MissingEmailError,
    MissingNonceError,
    NonceMismatchError,
    ProviderDeniedError,
    UnsupportedProviderError,
)
from authcore.crypto.types import IdentityClaim
from authcore.federation.registry import ClientRegistry
from authcore.federation.types import FederationOutcome, LoginRedirect, Provider
from authcore.tokens.service import TokenService

logger = logging.getLogger(__name__)

NONCE_BYTES = 32

UserResolver = Callable[[str, str, str], Awaitable[str]]


def parse_provider(name: str) -> Provider:
    """Map a path segment to a supported provider."""
    try:
        return Provider(name)
    except ValueError as exc:
        raise UnsupportedProviderError() from exc


def generate_nonce() -> str:
    """Generate a single-use nonce for one login attempt."""
    return secrets.token_urlsafe(NONCE_BYTES)


class FederationCoordinator:
    """Runs the two halves of a third-party login against a client registry."""

    def __init__(self, registry: ClientRegistry) -> None:
        self._registry = registry

    async def initiate(self, provider_name: str) -> LoginRedirect:
        """Build the provider authorization URL for a fresh nonce."""
        provider = parse_provider(provider_name)
        client = await self._registry.get_or_init(provider)
        nonce = generate_nonce()
        return LoginRedirect(url=client.authorization_url(nonce), nonce=nonce)

    async def complete(
        self,
        provider_name: str,
        params: Mapping[str, str],
        nonce: str | None,
        tokens: TokenService,
        resolve_user: UserResolver,
    ) -> FederationOutcome:
        """Verify the callback, resolve the local user, and issue a token pair.

        ``nonce`` is the value round-tripped in the client cookie. ``resolve_user``
        maps (provider, subject, email) to a local user id.
        """
        provider = parse_provider(provider_name)
        if not nonce:
            raise MissingNonceError()
        client = self._registry.get(provider)
        if client is None:
            raise ClientNotInitializedError()
        if params.get("error"):
            raise ProviderDeniedError(params.get("error_description") or None)
        state = params.get("state", "")
        if not secrets.compare_digest(state.encode(), nonce.encode()):
            logger.warning("Callback state does not match nonce for %s", provider)
            raise NonceMismatchError()

        claims = await client.exchange(params, nonce)
        if not claims.email:
            raise MissingEmailError()

        user_id = await resolve_user(provider.value, claims.sub, claims.email)
        pair = await tokens.issue_token_pair(IdentityClaim(id=user_id))
        logger.info("Federated login via %s completed", provider)
        return FederationOutcome(
            user_id=user_id,
            pair=pair,
            redirect_to=client.registration.success_redirect,
        )
