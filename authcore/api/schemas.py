"""Request and response bodies for the account routes."""

from pydantic import BaseModel, Field


class CredentialsPayload(BaseModel):
    """Body of POST /auth/users and POST /auth/users/login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class RefreshTokenPayload(BaseModel):
    """Optional body carrying a refresh token for non-browser clients."""

    token: str | None = None


class IdentityResponse(BaseModel):
    """Response for GET /auth/me."""

    id: str
