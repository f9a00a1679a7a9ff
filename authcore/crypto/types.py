"""Type definitions for signed token payloads."""

from pydantic import BaseModel, ConfigDict


class IdentityClaim(BaseModel):
    """Subject identity embedded in every signed token."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str


class DecodedToken(BaseModel):
    """Verified JWT payload."""

    model_config = ConfigDict(extra="allow")

    id: str
    exp: int
    iat: int | None = None
    jti: str | None = None
