"""HS256 signing and verification of expiring identity tokens."""

from datetime import UTC, datetime, timedelta

import jwt
import uuid_utils
from pydantic import ValidationError

from authcore.crypto.types import DecodedToken, IdentityClaim

ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["exp", "id"]


def sign_token(claim: IdentityClaim, secret: str, ttl_seconds: int) -> str:
    """Create a signed token for ``claim`` that expires after ``ttl_seconds``."""
    if not secret:
        raise ValueError("Signing secret is not configured")
    now = datetime.now(UTC)
    payload = {
        "id": claim.id,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
        "jti": str(uuid_utils.uuid7()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> IdentityClaim | None:
    """Return the embedded claim, or None for any malformed, forged, or expired token."""
    if not token or not secret:
        return None
    try:
        raw = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
        decoded = DecodedToken.model_validate(raw)
    except (jwt.PyJWTError, ValidationError):
        return None
    return IdentityClaim(id=decoded.id)
