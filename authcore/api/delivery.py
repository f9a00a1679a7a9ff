"""Token delivery: Set-Cookie headers for browsers, JSON bodies for other clients."""

from starlette.responses import JSONResponse, RedirectResponse, Response

from authcore.tokens.types import TokenPair

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
NONCE_COOKIE = "nonce"

_COOKIE_ATTRIBUTES = "HttpOnly; Path=/; SameSite=None; Secure"


def _cookie(name: str, value: str, max_age: int) -> str:
    return f"{name}={value}; Max-Age={max_age}; {_COOKIE_ATTRIBUTES}"


def set_token_cookies(response: Response, pair: TokenPair) -> None:
    """Append one Set-Cookie header per token."""
    response.headers.append(
        "set-cookie",
        _cookie(
            ACCESS_TOKEN_COOKIE,
            pair.access_token.token,
            pair.access_token.expires_in_seconds,
        ),
    )
    response.headers.append(
        "set-cookie",
        _cookie(
            REFRESH_TOKEN_COOKIE,
            pair.refresh_token.token,
            pair.refresh_token.expires_in_seconds,
        ),
    )


def clear_token_cookies(response: Response) -> None:
    """Expire both token cookies on the client."""
    response.headers.append("set-cookie", _cookie(ACCESS_TOKEN_COOKIE, '""', 0))
    response.headers.append("set-cookie", _cookie(REFRESH_TOKEN_COOKIE, '""', 0))


def token_body(pair: TokenPair, user_id: str) -> dict[str, object]:
    """Success envelope carrying the pair for non-browser clients."""
    return {
        "success": {
            "tokens": pair.model_dump(by_alias=True),
            "userId": user_id,
        }
    }


def deliver_tokens(
    pair: TokenPair, user_id: str, redirect_to: str | None = None
) -> Response:
    """Redirect a browser with the user id, or answer with a JSON body; cookies on both."""
    response: Response
    if redirect_to:
        response = RedirectResponse(url=f"{redirect_to}?userid={user_id}", status_code=302)
    else:
        response = JSONResponse(token_body(pair, user_id))
    set_token_cookies(response, pair)
    return response
