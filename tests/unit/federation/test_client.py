"""Tests for the OpenID Connect relying-party client."""

from urllib.parse import parse_qs, urlparse

import pytest

from authcore.core.errors import (
    NonceMismatchError,
    ProviderDeniedError,
    ProviderExchangeError,
)
from authcore.federation.client import OIDCClient
from authcore.federation.registry import ClientRegistry
from authcore.federation.types import Provider
from tests.fakes import IDP_BASE, IDP_CLIENT_ID, FakeIdentityProvider

NONCE = "nonce-abc"


@pytest.fixture
async def google(registry: ClientRegistry) -> OIDCClient:
    return await registry.get_or_init(Provider.GOOGLE)


@pytest.fixture
async def facebook(registry: ClientRegistry) -> OIDCClient:
    return await registry.get_or_init(Provider.FACEBOOK)


class TestDiscover:
    """Tests for OIDCClient.discover."""

    @pytest.mark.asyncio
    async def test_metadata_loaded(self, google: OIDCClient) -> None:
        assert google.metadata.issuer == IDP_BASE
        assert google.metadata.token_endpoint == f"{IDP_BASE}/token"

    @pytest.mark.asyncio
    async def test_unreachable_provider(
        self, registry: ClientRegistry, idp: FakeIdentityProvider
    ) -> None:
        idp.discovery_failures = 1
        with pytest.raises(ProviderExchangeError):
            await registry.get_or_init(Provider.FACEBOOK)


class TestAuthorizationUrl:
    """Tests for authorization request construction."""

    @pytest.mark.asyncio
    async def test_google_params(self, google: OIDCClient) -> None:
        url = google.authorization_url(NONCE)
        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == f"{IDP_BASE}/authorize"
        query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        assert query == {
            "client_id": IDP_CLIENT_ID,
            "redirect_uri": "https://test/auth/login/google/callback",
            "response_type": "code",
            "scope": "openid email profile",
            "response_mode": "form_post",
            "nonce": NONCE,
            "state": NONCE,
        }

    @pytest.mark.asyncio
    async def test_facebook_uses_query_mode(self, facebook: OIDCClient) -> None:
        query = parse_qs(urlparse(facebook.authorization_url(NONCE)).query)
        assert query["response_mode"] == ["query"]
        assert query["scope"] == ["openid email public_profile"]


class TestExchange:
    """Tests for code redemption and id_token verification."""

    @pytest.mark.asyncio
    async def test_verified_claims(
        self, google: OIDCClient, idp: FakeIdentityProvider
    ) -> None:
        code, _ = idp.authorize(google.authorization_url(NONCE))
        claims = await google.exchange({"code": code}, NONCE)
        assert claims.sub == "idp-subject-1"
        assert claims.email == "fed.user@example.com"
        assert claims.nonce == NONCE

    @pytest.mark.asyncio
    async def test_missing_code(self, google: OIDCClient) -> None:
        with pytest.raises(ProviderDeniedError):
            await google.exchange({}, NONCE)

    @pytest.mark.asyncio
    async def test_rejected_code(self, google: OIDCClient) -> None:
        with pytest.raises(ProviderExchangeError):
            await google.exchange({"code": "never-issued"}, NONCE)

    @pytest.mark.asyncio
    async def test_token_endpoint_failure(
        self, google: OIDCClient, idp: FakeIdentityProvider
    ) -> None:
        code, _ = idp.authorize(google.authorization_url(NONCE))
        idp.token_status = 500
        with pytest.raises(ProviderExchangeError):
            await google.exchange({"code": code}, NONCE)

    @pytest.mark.asyncio
    async def test_nonce_claim_mismatch(
        self, google: OIDCClient, idp: FakeIdentityProvider
    ) -> None:
        code, _ = idp.authorize(google.authorization_url(NONCE))
        idp.id_token_nonce = "replayed-nonce"
        with pytest.raises(NonceMismatchError):
            await google.exchange({"code": code}, NONCE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"aud": "someone-else"},
            {"iss": "https://evil.test"},
            {"exp": 1_000_000_000, "iat": 999_999_000},
        ],
    )
    async def test_invalid_id_token(
        self,
        google: OIDCClient,
        idp: FakeIdentityProvider,
        overrides: dict[str, object],
    ) -> None:
        code, _ = idp.authorize(google.authorization_url(NONCE))
        idp.claim_overrides = overrides
        with pytest.raises(ProviderExchangeError):
            await google.exchange({"code": code}, NONCE)

    @pytest.mark.asyncio
    async def test_jwks_cached_between_exchanges(
        self, google: OIDCClient, idp: FakeIdentityProvider
    ) -> None:
        requested: list[str] = []
        handler = idp.handler

        def _recording(request):  # type: ignore[no-untyped-def]
            requested.append(request.url.path)
            return handler(request)

        idp.handler = _recording  # type: ignore[method-assign]
        for _ in range(2):
            code, _state = idp.authorize(google.authorization_url(NONCE))
            await google.exchange({"code": code}, NONCE)
        assert requested.count("/jwks") == 1
        assert requested.count("/token") == 2
