"""Tests for environment-driven settings."""

import pytest

from authcore.core.settings import (
    AuthSettings,
    DatabaseSettings,
    FederationSettings,
)
from authcore.federation.types import Provider


class TestAuthSettings:
    """Tests for AuthSettings."""

    def test_defaults(self) -> None:
        settings = AuthSettings()
        assert settings.access_token_ttl == 900
        assert settings.refresh_token_ttl == 90 * 86400
        assert settings.nonce_max_age == 900

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_ACCESS_TOKEN_TTL", "60")
        assert AuthSettings().access_token_ttl == 60

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", []),
            ("https://a.test", ["https://a.test"]),
            ("https://a.test, https://b.test,", ["https://a.test", "https://b.test"]),
        ],
    )
    def test_cors_origins(self, raw: str, expected: list[str]) -> None:
        assert AuthSettings(cors_origins=raw).get_cors_origin_list() == expected


class TestDatabaseSettings:
    """Tests for DatabaseSettings.async_url."""

    def test_built_from_parts(self) -> None:
        db = DatabaseSettings(host="db", port=6543, user="u", password="p", database="d")
        assert db.async_url == "postgresql+asyncpg://u:p@db:6543/d"

    def test_explicit_url_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_DB_URL", "sqlite+aiosqlite:///./auth.db")
        assert DatabaseSettings().async_url == "sqlite+aiosqlite:///./auth.db"


class TestFederationSettings:
    """Tests for per-provider registrations."""

    def test_google_registration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_OIDC_GOOGLE_CLIENT_ID", "g-id")
        monkeypatch.setenv("AUTH_OIDC_FRONTEND_URL", "https://app.test")
        reg = FederationSettings().registration(Provider.GOOGLE)
        assert reg.client_id == "g-id"
        assert reg.response_mode == "form_post"
        assert reg.success_redirect == "https://app.test/signin/google"

    def test_facebook_registration(self) -> None:
        reg = FederationSettings().registration(Provider.FACEBOOK)
        assert reg.response_mode == "query"
        assert reg.success_redirect is None
        assert "public_profile" in reg.scope
