"""OpenID Connect relying-party client for one identity provider."""

import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlencode

import httpx
import jwt
from pydantic import ValidationError

from authcore.core.errors import (
    NonceMismatchError,
    ProviderDeniedError,
    ProviderExchangeError,
)
from authcore.federation.types import (
    FederatedClaims,
    ProviderMetadata,
    ProviderRegistration,
)

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 10.0
ID_TOKEN_ALGORITHMS = ["RS256", "ES256"]

HttpClientFactory = Callable[[], httpx.AsyncClient]


def default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)


class OIDCClient:
    """Builds authorization URLs and redeems callbacks for one provider."""

    def __init__(
        self,
        registration: ProviderRegistration,
        metadata: ProviderMetadata,
        http_factory: HttpClientFactory = default_http_client,
    ) -> None:
        self.registration = registration
        self.metadata = metadata
        self._http_factory = http_factory
        self._jwks: jwt.PyJWKSet | None = None

    @classmethod
    async def discover(
        cls,
        registration: ProviderRegistration,
        http_factory: HttpClientFactory = default_http_client,
    ) -> "OIDCClient":
        """Fetch the provider discovery document and build a client from it."""
        try:
            async with http_factory() as http:
                resp = await http.get(registration.discovery_url)
                resp.raise_for_status()
                metadata = ProviderMetadata.model_validate(resp.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Discovery failed for %s: %s",
                registration.provider,
                type(exc).__name__,
            )
            raise ProviderExchangeError("Provider discovery failed") from exc
        logger.info("Discovered %s issuer %s", registration.provider, metadata.issuer)
        return cls(registration, metadata, http_factory)

    def authorization_url(self, nonce: str) -> str:
        """Authorization request URL carrying the nonce (also echoed back as ``state``)."""
        params = {
            "client_id": self.registration.client_id,
            "redirect_uri": self.registration.callback_url,
            "response_type": "code",
            "scope": self.registration.scope,
            "response_mode": self.registration.response_mode,
            "nonce": nonce,
            "state": nonce,
        }
        endpoint = self.metadata.authorization_endpoint
        separator = "&" if "?" in endpoint else "?"
        return f"{endpoint}{separator}{urlencode(params)}"

    async def exchange(self, params: Mapping[str, str], nonce: str) -> FederatedClaims:
        """Redeem the callback code and return verified id_token claims.

        The id_token must be signed by a key in the provider JWKS, issued by
        the discovered issuer for this client, unexpired, and carry ``nonce``.
        """
        code = params.get("code")
        if not code:
            raise ProviderDeniedError("Missing authorization code")

        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.registration.callback_url,
            "client_id": self.registration.client_id,
            "client_secret": self.registration.client_secret,
        }
        try:
            async with self._http_factory() as http:
                resp = await http.post(
                    self.metadata.token_endpoint,
                    data=form,
                    headers={"Accept": "application/json"},
                )
                resp.raise_for_status()
                id_token = _id_token_from(resp.json())
                key = await self._signing_key(http, id_token)
            raw = jwt.decode(
                id_token,
                key,
                algorithms=ID_TOKEN_ALGORITHMS,
                audience=self.registration.client_id,
                issuer=self.metadata.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
            claims = FederatedClaims.model_validate(raw)
        except (httpx.HTTPError, jwt.PyJWTError, ValidationError, ValueError) as exc:
            logger.warning(
                "Code exchange failed for %s: %s",
                self.registration.provider,
                type(exc).__name__,
            )
            raise ProviderExchangeError() from exc

        if claims.nonce != nonce:
            raise NonceMismatchError()
        return claims

    async def _signing_key(self, http: httpx.AsyncClient, id_token: str) -> Any:
        """Find the JWKS key for the token ``kid``, refetching once on a miss."""
        kid = jwt.get_unverified_header(id_token).get("kid")
        for refresh in (False, True):
            if self._jwks is None or refresh:
                resp = await http.get(self.metadata.jwks_uri)
                resp.raise_for_status()
                self._jwks = jwt.PyJWKSet.from_dict(resp.json())
            keys = self._jwks.keys
            if kid is None and len(keys) == 1:
                return keys[0].key
            for candidate in keys:
                if candidate.key_id == kid:
                    return candidate.key
        raise jwt.InvalidKeyError(f"No signing key for kid {kid!r}")


def _id_token_from(body: object) -> str:
    if not isinstance(body, dict) or not isinstance(body.get("id_token"), str):
        raise ValueError("Token response carries no id_token")
    return body["id_token"]
