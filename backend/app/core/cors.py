"""
Origin guard for browser callers.

The proxy does not reject requests by origin. It only decides whether
the cross-origin headers are emitted; browsers enforce the rest.
"""

import re
from typing import Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logger import logger

LOOPBACK_ORIGIN = re.compile(r"^(https?://localhost(?::\d+)?|http://127\.0\.0\.1(?::\d+)?)$")

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"
MAX_AGE = "86400"


def resolve_allowed_origin(request_origin: Optional[str], configured_origin: str = "") -> str:
    """
    Return the origin to echo back, or "" when none should be granted.

    With a configured origin only an exact match is granted. Without
    one, loopback origins are accepted for local development.
    """
    if configured_origin:
        return configured_origin if request_origin == configured_origin else ""
    if request_origin and LOOPBACK_ORIGIN.match(request_origin):
        return request_origin
    return ""


def cors_headers(origin: str) -> Dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
    }
    if origin:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Answers pre-flight requests and stamps CORS headers on every response."""

    def __init__(self, app, allowed_origin: str = ""):
        super().__init__(app)
        self.allowed_origin = allowed_origin

    async def dispatch(self, request: Request, call_next):
        request_origin = request.headers.get("origin")
        origin = resolve_allowed_origin(request_origin, self.allowed_origin)
        if request_origin and not origin:
            logger.debug(f"Origin {request_origin} not allowed; omitting CORS headers")

        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        response.headers.update(cors_headers(origin))
        return response
