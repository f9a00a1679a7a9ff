"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from authcore.federation.types import Provider, ProviderRegistration

ACCESS_TOKEN_TTL_DEFAULT = 15 * 60
REFRESH_TOKEN_TTL_DEFAULT = 90 * 86400
NONCE_MAX_AGE_DEFAULT = 15 * 60
DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
FACEBOOK_DISCOVERY_URL = "https://www.facebook.com/.well-known/openid-configuration/"


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="AUTH_DB_")

    url: str = ""
    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "authcore"
    password: str = "authcore"
    database: str = "authcore"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT

    @property
    def async_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        if self.url:
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class AuthSettings(BaseSettings):
    """Token signing, lifetime, and HTTP surface settings."""

    model_config = SettingsConfigDict(env_prefix="AUTH_")

    access_token_secret: str = ""
    refresh_token_secret: str = ""
    access_token_ttl: int = ACCESS_TOKEN_TTL_DEFAULT
    refresh_token_ttl: int = REFRESH_TOKEN_TTL_DEFAULT
    nonce_max_age: int = NONCE_MAX_AGE_DEFAULT
    cors_origins: str = ""
    log_level: str = "INFO"

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if not self.cors_origins:
            return []
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


class FederationSettings(BaseSettings):
    """Per-provider OpenID Connect client settings."""

    model_config = SettingsConfigDict(env_prefix="AUTH_OIDC_")

    google_discovery_url: str = GOOGLE_DISCOVERY_URL
    google_client_id: str = ""
    google_client_secret: str = ""
    google_callback_url: str = "http://localhost:8000/auth/login/google/callback"

    facebook_discovery_url: str = FACEBOOK_DISCOVERY_URL
    facebook_client_id: str = ""
    facebook_client_secret: str = ""
    facebook_callback_url: str = "http://localhost:8000/auth/login/facebook/callback"

    frontend_url: str = "http://localhost:3000"

    def registration(self, provider: Provider) -> ProviderRegistration:
        """Return the static client registration for a provider."""
        if provider is Provider.GOOGLE:
            return ProviderRegistration(
                provider=provider,
                discovery_url=self.google_discovery_url,
                client_id=self.google_client_id,
                client_secret=self.google_client_secret,
                callback_url=self.google_callback_url,
                scope="openid email profile",
                response_mode="form_post",
                success_redirect=f"{self.frontend_url.rstrip('/')}/signin/google",
            )
        return ProviderRegistration(
            provider=provider,
            discovery_url=self.facebook_discovery_url,
            client_id=self.facebook_client_id,
            client_secret=self.facebook_client_secret,
            callback_url=self.facebook_callback_url,
            scope="openid email public_profile",
            response_mode="query",
        )
