"""Tests for token value types."""

from authcore.crypto.types import IdentityClaim
from authcore.tokens.types import IssuedToken, TokenPair, VerifyResult


class TestTokenPair:
    """Tests for the wire shape of a token pair."""

    def test_camel_case_dump(self) -> None:
        pair = TokenPair(
            access_token=IssuedToken(token="a", expires_in_seconds=900),
            refresh_token=IssuedToken(token="r", expires_in_seconds=7776000),
        )
        assert pair.model_dump(by_alias=True) == {
            "accessToken": {"token": "a", "expiresInSeconds": 900},
            "refreshToken": {"token": "r", "expiresInSeconds": 7776000},
        }


class TestVerifyResult:
    """Tests for VerifyResult constructors."""

    def test_invalid_has_no_claim(self) -> None:
        result = VerifyResult.invalid()
        assert result.valid is False
        assert result.claim is None

    def test_of_carries_claim(self) -> None:
        result = VerifyResult.of(IdentityClaim(id="u"))
        assert result.valid is True
        assert result.claim == IdentityClaim(id="u")
