"""Type definitions for token issuance and verification."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict

from authcore.crypto.types import IdentityClaim


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


class IssuedToken(BaseModel):
    """A signed token and its lifetime in seconds."""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)

    token: str
    expires_in_seconds: int


class TokenPair(BaseModel):
    """Access and refresh token issued together."""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)

    access_token: IssuedToken
    refresh_token: IssuedToken


class VerifyResult(BaseModel):
    """Outcome of token verification: invalid, or valid with its claim."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    claim: IdentityClaim | None = None

    @classmethod
    def invalid(cls) -> "VerifyResult":
        return cls(valid=False)

    @classmethod
    def of(cls, claim: IdentityClaim) -> "VerifyResult":
        return cls(valid=True, claim=claim)


class Rotation(BaseModel):
    """A successful refresh-token rotation."""

    claim: IdentityClaim
    pair: TokenPair


class CredentialStore(Protocol):
    """Persistence contract for live refresh tokens."""

    async def exists(self, token: str) -> bool: ...

    async def insert(self, token: str) -> None: ...

    async def delete(self, token: str) -> bool: ...
