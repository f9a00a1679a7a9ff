"""Access-token issuance and verification; never touches the credential store."""

from authcore.core.settings import AuthSettings
from authcore.crypto.signer import sign_token, verify_token
from authcore.crypto.types import IdentityClaim
from authcore.tokens.types import IssuedToken, VerifyResult


def issue_access_token(claim: IdentityClaim, settings: AuthSettings) -> IssuedToken:
    """Sign a short-lived access token."""
    token = sign_token(claim, settings.access_token_secret, settings.access_token_ttl)
    return IssuedToken(token=token, expires_in_seconds=settings.access_token_ttl)


def verify_access_token(token: str | None, settings: AuthSettings) -> VerifyResult:
    """Verify an access token by signature and expiry only."""
    if not token:
        return VerifyResult.invalid()
    claim = verify_token(token, settings.access_token_secret)
    if claim is None:
        return VerifyResult.invalid()
    return VerifyResult.of(claim)
