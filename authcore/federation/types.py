"""Type definitions for federated (OpenID Connect) login."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from authcore.tokens.types import TokenPair


class Provider(StrEnum):
    """Supported third-party identity providers."""

    GOOGLE = "google"
    FACEBOOK = "facebook"


class ProviderRegistration(BaseModel):
    """Static client configuration for one provider."""

    provider: Provider
    discovery_url: str
    client_id: str
    client_secret: str = ""
    callback_url: str
    scope: str
    response_mode: str
    success_redirect: str | None = None


class ProviderMetadata(BaseModel):
    """The parts of a provider discovery document the client relies on."""

    model_config = ConfigDict(extra="ignore")

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str


class FederatedClaims(BaseModel):
    """Verified id_token claims."""

    model_config = ConfigDict(extra="allow")

    sub: str
    email: str | None = None
    nonce: str | None = None


class LoginRedirect(BaseModel):
    """Where to send the user-agent, and the nonce bound to that attempt."""

    url: str
    nonce: str


class FederationOutcome(BaseModel):
    """Result of a completed callback."""

    user_id: str
    pair: TokenPair
    redirect_to: str | None = None
