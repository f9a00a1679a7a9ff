"""Third-party login endpoints keyed by provider name."""

from functools import partial

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from authcore.api.delivery import NONCE_COOKIE, deliver_tokens
from authcore.api.deps import Coordinator, DbSession, Settings, Tokens
from authcore.db.engine import commit_session
from authcore.db.repo_user import get_or_create_user_by_provider

router = APIRouter(prefix="/auth", tags=["federation"])

HTTP_FOUND = 302


async def _callback_params(request: Request) -> dict[str, str]:
    """Callback parameters from the query string and, for form_post, the body."""
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({k: v for k, v in form.items() if isinstance(v, str)})
    return params


@router.get("/login/{provider}", response_model=None)
async def login_with_provider(
    provider: str,
    coordinator: Coordinator,
    settings: Settings,
) -> RedirectResponse:
    """GET /auth/login/{provider} -- start a nonce-bound login with the provider."""
    redirect = await coordinator.initiate(provider)
    response = RedirectResponse(url=redirect.url, status_code=HTTP_FOUND)
    response.set_cookie(
        NONCE_COOKIE,
        redirect.nonce,
        max_age=settings.nonce_max_age,
        path="/",
        httponly=True,
        samesite="none",
        secure=True,
    )
    return response


@router.api_route(
    "/login/{provider}/callback", methods=["GET", "POST"], response_model=None
)
async def provider_callback(
    provider: str,
    request: Request,
    coordinator: Coordinator,
    db: DbSession,
    tokens: Tokens,
) -> Response:
    """GET|POST /auth/login/{provider}/callback -- finish login and issue tokens."""
    outcome = await coordinator.complete(
        provider,
        await _callback_params(request),
        request.cookies.get(NONCE_COOKIE),
        tokens,
        partial(get_or_create_user_by_provider, db),
    )
    await commit_session(db)
    response = deliver_tokens(outcome.pair, outcome.user_id, outcome.redirect_to)
    response.delete_cookie(
        NONCE_COOKIE, path="/", httponly=True, samesite="none", secure=True
    )
    return response
