from typing import Any, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


class OriginContextMiddleware(BaseHTTPMiddleware):
    """Attach the caller's Origin header to request state for links in notification emails."""

    async def dispatch(self, request: Request, call_next: Callable[..., Any]) -> Response:
        request.state.origin = request.headers.get("Origin")
        response = await call_next(request)
        return response


def get_request_origin(request: Request) -> str | None:
    return getattr(request.state, "origin", None)
