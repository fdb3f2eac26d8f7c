"""
Error taxonomy and HTTP mapping for the proxy.

Every failure the proxy can produce is one of the classes below. Routes
raise them; the handlers registered by `register_error_handlers` turn
them into responses through `error_status` / `error_response`, so the
status mapping lives in one place.

Error bodies are always `{"error": "<message>"}`, except for
`UpstreamError`, whose body is the provider's own response text.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logger import logger

GENERIC_ERROR_MESSAGE = "Internal server error."


def method_not_allowed_message(allow: str) -> str:
    return f"Method not allowed. Use {allow}."


METHOD_NOT_ALLOWED_MESSAGE = method_not_allowed_message("POST")


class ProxyError(Exception):
    """Base class for errors with a known HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestValidationFailed(ProxyError):
    """Missing or malformed request fields."""

    status_code = 400


class MethodNotAllowed(ProxyError):
    status_code = 405

    def __init__(self, message: str = METHOD_NOT_ALLOWED_MESSAGE):
        super().__init__(message)


class ConfigurationError(ProxyError):
    """Server-side setting is missing; the operator has to fix it."""

    status_code = 500


class StagingError(ProxyError):
    """Inline image could not be turned into a fetchable URL."""

    status_code = 500


class DataUrlDecodeError(StagingError):
    pass


class ProviderUnavailableError(ProxyError):
    """The inference provider could not be reached at all."""

    status_code = 500


class InternalError(ProxyError):
    """Unexpected failure, already reduced to a caller-safe message."""

    status_code = 500

    @classmethod
    def wrap(cls, exc: Exception, expose: bool = False) -> "InternalError":
        if expose:
            return cls(str(exc) or exc.__class__.__name__)
        return cls(GENERIC_ERROR_MESSAGE)


class UpstreamError(ProxyError):
    """
    Non-2xx response from the inference provider.

    Status and body are relayed to the caller untouched.
    """

    def __init__(self, status_code: int, body: str, content_type: Optional[str] = None):
        super().__init__(f"Replicate prediction start failed: {status_code} {body}")
        self.status_code = status_code
        self.body = body
        self.content_type = content_type or "application/json"


def error_status(exc: Exception) -> int:
    """Map any exception to the HTTP status the caller receives."""
    if isinstance(exc, ProxyError):
        return exc.status_code
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code
    return 500


def error_response(exc: Exception, expose_internal: bool = False) -> Response:
    """Render an exception as the proxy's error response."""
    status_code = error_status(exc)

    if isinstance(exc, UpstreamError):
        return Response(content=exc.body, status_code=status_code, media_type=exc.content_type)

    headers = None
    if isinstance(exc, ProxyError):
        message = exc.message
    elif isinstance(exc, StarletteHTTPException):
        headers = getattr(exc, "headers", None)
        message = str(exc.detail)
        allow = (headers or {}).get("Allow")
        if status_code == 405 and allow:
            message = method_not_allowed_message(allow)
    else:
        message = InternalError.wrap(exc, expose_internal).message

    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _expose_internal(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.expose_internal_errors)


def register_error_handlers(app: FastAPI) -> None:
    """Route every failure through `error_response`."""

    @app.exception_handler(ProxyError)
    async def handle_proxy_error(request: Request, exc: ProxyError):
        if exc.status_code >= 500 and not isinstance(exc, UpstreamError):
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return error_response(exc, expose_internal=_expose_internal(request))
