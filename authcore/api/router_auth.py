"""Account routes: registration, password login, refresh, logout."""

import logging

from fastapi import APIRouter, Request, Response

from authcore.api.deps import CurrentIdentity, DbSession, Tokens
from authcore.api.delivery import (
    REFRESH_TOKEN_COOKIE,
    clear_token_cookies,
    deliver_tokens,
)
from authcore.api.schemas import (
    CredentialsPayload,
    IdentityResponse,
    RefreshTokenPayload,
)
from authcore.core.errors import (
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    MissingRefreshTokenError,
)
from authcore.crypto.types import IdentityClaim
from authcore.db.engine import commit_session
from authcore.db.repo_user import create_user, verify_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

HTTP_NO_CONTENT = 204


def _refresh_token_from(
    request: Request, payload: RefreshTokenPayload | None
) -> str:
    """Cookie for browser clients, JSON body ``token`` otherwise."""
    token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not token and payload is not None:
        token = payload.token
    if not token:
        raise MissingRefreshTokenError()
    return token


@router.post("/users", response_model=None)
async def register(
    payload: CredentialsPayload,
    db: DbSession,
    tokens: Tokens,
) -> Response:
    """POST /auth/users -- create a password account and sign it in."""
    user = await create_user(db, payload.username, payload.password)
    pair = await tokens.issue_token_pair(IdentityClaim(id=user.id))
    await commit_session(db)
    logger.info("Registered user %s", user.id)
    return deliver_tokens(pair, user.id)


@router.post("/users/login", response_model=None)
async def login(
    payload: CredentialsPayload,
    db: DbSession,
    tokens: Tokens,
) -> Response:
    """POST /auth/users/login -- exchange username and password for a token pair."""
    user = await verify_credentials(db, payload.username, payload.password)
    if user is None:
        raise InvalidCredentialsError()
    pair = await tokens.issue_token_pair(IdentityClaim(id=user.id))
    await commit_session(db)
    return deliver_tokens(pair, user.id)


@router.post("/token", response_model=None)
async def refresh(
    request: Request,
    db: DbSession,
    tokens: Tokens,
    payload: RefreshTokenPayload | None = None,
) -> Response:
    """POST /auth/token -- rotate a refresh token into a new pair."""
    token = _refresh_token_from(request, payload)
    rotation = await tokens.rotate_refresh_token(token)
    if rotation is None:
        raise InvalidRefreshTokenError()
    await commit_session(db)
    return deliver_tokens(rotation.pair, rotation.claim.id)


@router.delete("/users/logout", response_model=None)
async def logout(
    request: Request,
    db: DbSession,
    tokens: Tokens,
    payload: RefreshTokenPayload | None = None,
) -> Response:
    """DELETE /auth/users/logout -- revoke the refresh token and clear cookies."""
    token = _refresh_token_from(request, payload)
    await tokens.delete_refresh_token(token)
    await commit_session(db)
    response = Response(status_code=HTTP_NO_CONTENT)
    clear_token_cookies(response)
    return response


@router.get("/me")
async def me(identity: CurrentIdentity) -> IdentityResponse:
    """GET /auth/me -- the identity behind the presented access token."""
    return IdentityResponse(id=identity.id)
