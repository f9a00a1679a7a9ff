"""FastAPI dependencies: settings, token service, and the request authenticator."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.api.delivery import ACCESS_TOKEN_COOKIE
from authcore.core.errors import (
    AuthenticationRejectedError,
    AuthenticationRequiredError,
)
from authcore.core.settings import AuthSettings
from authcore.crypto.types import IdentityClaim
from authcore.db.engine import get_session
from authcore.db.repo_refresh import RefreshTokenStore
from authcore.federation.coordinator import FederationCoordinator
from authcore.federation.registry import ClientRegistry
from authcore.tokens.access import verify_access_token
from authcore.tokens.service import TokenService

logger = logging.getLogger(__name__)


def load_auth_settings() -> AuthSettings:
    return AuthSettings()


Settings = Annotated[AuthSettings, Depends(load_auth_settings)]
DbSession = Annotated[AsyncSession, Depends(get_session)]


def extract_access_token(request: Request) -> str | None:
    """Take the access token from its cookie, else from the Authorization header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    parts = request.headers.get("Authorization", "").split()
    if len(parts) < 2:
        return None
    return parts[1]


async def require_identity(request: Request, settings: Settings) -> IdentityClaim:
    """Guard for protected routes; verifies the access token without touching the store."""
    token = extract_access_token(request)
    if token is None:
        raise AuthenticationRequiredError()
    result = verify_access_token(token, settings)
    if not result.valid or result.claim is None:
        logger.info("Rejected access token on %s", request.url.path)
        raise AuthenticationRejectedError()
    request.state.identity = result.claim
    return result.claim


CurrentIdentity = Annotated[IdentityClaim, Depends(require_identity)]


def get_token_service(db: DbSession, settings: Settings) -> TokenService:
    """Token service bound to the request's database session."""
    return TokenService(RefreshTokenStore(db), settings)


Tokens = Annotated[TokenService, Depends(get_token_service)]


def get_coordinator(request: Request) -> FederationCoordinator:
    """Coordinator over the application's process-wide client registry."""
    registry: ClientRegistry = request.app.state.client_registry
    return FederationCoordinator(registry)


Coordinator = Annotated[FederationCoordinator, Depends(get_coordinator)]
