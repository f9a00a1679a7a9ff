"""Tagged error type shared by the token core and its HTTP boundary."""

import logging
from collections.abc import Mapping
from enum import StrEnum

from fastapi import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_INTERNAL_ERROR = 500
HTTP_BAD_GATEWAY = 502

GENERIC_FAILURE_MESSAGE = "Something went wrong"


class ErrorKind(StrEnum):
    """Payload shape of an error on the wire."""

    SIMPLE = "simple"
    COMPLEX = "complex"
    UNKNOWN = "unknown"


class AuthCoreError(Exception):
    """Base error carrying a kind, an HTTP-equivalent code, and a message."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    code: int = HTTP_INTERNAL_ERROR
    message: str = GENERIC_FAILURE_MESSAGE

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Mapping[str, str] | None = None,
    ) -> None:
        self.message = message or self.message
        self.details: dict[str, str] = dict(details or {})
        super().__init__(self.message)


class AuthenticationRequiredError(AuthCoreError):
    """No credential was presented."""

    kind = ErrorKind.SIMPLE
    code = HTTP_UNAUTHORIZED
    message = "Authentication required"


class AuthenticationRejectedError(AuthCoreError):
    """A credential was presented but did not verify."""

    kind = ErrorKind.SIMPLE
    code = HTTP_FORBIDDEN
    message = "Invalid access token"


class InvalidRefreshTokenError(AuthCoreError):
    kind = ErrorKind.SIMPLE
    code = HTTP_FORBIDDEN
    message = "Invalid refresh token"


class MissingRefreshTokenError(AuthCoreError):
    kind = ErrorKind.SIMPLE
    code = HTTP_UNAUTHORIZED
    message = "No refresh token given!"


class InvalidCredentialsError(AuthCoreError):
    """Username or password did not match."""

    kind = ErrorKind.COMPLEX
    code = HTTP_BAD_REQUEST
    message = "Username or password is incorrect"

    def __init__(self, message: str | None = None) -> None:
        text = message or self.message
        super().__init__(text, details={"username": text, "password": text})


class UsernameTakenError(AuthCoreError):
    kind = ErrorKind.COMPLEX
    code = HTTP_BAD_REQUEST
    message = "Username already exists!"

    def __init__(self) -> None:
        super().__init__(details={"username": self.message})


class ThirdPartyAccountError(AuthCoreError):
    """Password login attempted on an account that has no password."""

    kind = ErrorKind.COMPLEX
    code = HTTP_BAD_REQUEST
    message = "User already exists with third party account"

    def __init__(self) -> None:
        super().__init__(details={"username": self.message, "password": ""})


class RefreshTokenExistsError(AuthCoreError):
    """The exact refresh token string is already registered."""

    kind = ErrorKind.UNKNOWN
    code = HTTP_INTERNAL_ERROR
    message = "Refresh token already exists"


class CredentialStoreError(AuthCoreError):
    """The credential store could not be reached or failed mid-query."""

    kind = ErrorKind.UNKNOWN
    code = HTTP_INTERNAL_ERROR
    message = "Credential store failure"


class UnsupportedProviderError(AuthCoreError):
    kind = ErrorKind.SIMPLE
    code = HTTP_BAD_REQUEST
    message = "Invalid auth service!"


class MissingNonceError(AuthCoreError):
    """The federation callback arrived without the nonce cookie."""

    kind = ErrorKind.SIMPLE
    code = HTTP_INTERNAL_ERROR
    message = "Missing nonce!"


class ClientNotInitializedError(AuthCoreError):
    """The callback arrived for a provider whose client was never built."""

    kind = ErrorKind.SIMPLE
    code = HTTP_INTERNAL_ERROR
    message = "Client has not been initialized"


class NonceMismatchError(AuthCoreError):
    kind = ErrorKind.SIMPLE
    code = HTTP_UNAUTHORIZED
    message = "Nonce mismatch"


class MissingEmailError(AuthCoreError):
    kind = ErrorKind.SIMPLE
    code = HTTP_BAD_REQUEST
    message = "Third party did not provide email!"


class ProviderDeniedError(AuthCoreError):
    """The identity provider redirected back with an ``error`` parameter."""

    kind = ErrorKind.SIMPLE
    code = HTTP_BAD_REQUEST
    message = "Third party authentication failed"


class ProviderExchangeError(AuthCoreError):
    """Discovery, code exchange, or id_token verification failed upstream."""

    kind = ErrorKind.UNKNOWN
    code = HTTP_BAD_GATEWAY
    message = "Identity provider exchange failed"


def to_response(err: AuthCoreError) -> JSONResponse:
    """Translate an error into its wire shape."""
    match err.kind:
        case ErrorKind.SIMPLE:
            body: dict[str, object] = {"simpleError": err.message, "code": err.code}
        case ErrorKind.COMPLEX:
            body = {"complexError": err.details, "code": err.code}
        case ErrorKind.UNKNOWN:
            body = {"unknownError": GENERIC_FAILURE_MESSAGE, "code": err.code}
    return JSONResponse(body, status_code=err.code)


async def handle_auth_core_error(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for ``AuthCoreError``."""
    assert isinstance(exc, AuthCoreError)
    if exc.kind is ErrorKind.UNKNOWN:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
    else:
        logger.info(
            "%s %s rejected: %s (%d)",
            request.method,
            request.url.path,
            exc.message,
            exc.code,
        )
    return to_response(exc)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: any other exception answers as an UNKNOWN error."""
    logger.error(
        "%s %s crashed: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return to_response(AuthCoreError())
