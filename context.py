from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

request_context: ContextVar[Optional[Request]] = ContextVar("request_context", default=None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Expose the current request to code that is not handed it explicitly"""

    async def dispatch(self, request: Request, call_next):
        token = request_context.set(request)
        try:
            return await call_next(request)
        finally:
            request_context.reset(token)


def describe_request() -> str:
    request = request_context.get()
    if request is None:
        return "-"
    return f"{request.method} {request.url.path}"
