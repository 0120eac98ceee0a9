"""Error shaping for the HTTP boundary.

Every error that reaches a controller becomes a 500 response carrying the
error's type and description; it is logged server-side with its traceback.
DocumentStoreErrors go through an exception handler, anything else is caught
by ErrorShapingMiddleware before Starlette's plain-text fallback.
"""

import logging
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from domain.exceptions import AggregationError, DocumentStoreError

log = logging.getLogger(__name__)


def error_response(exc: Exception) -> JSONResponse:
    payload = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, AggregationError):
        payload["child_key"] = exc.child_key
    return JSONResponse(status_code=500, content=payload)


async def document_store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(f"❌ {request.method} {request.url.path} failed: {exc}")
    return error_response(exc)


class ErrorShapingMiddleware(BaseHTTPMiddleware):
    """Turns any unhandled error into the same JSON error body as store errors."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            log.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {e}")
            return error_response(e)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocumentStoreError, document_store_error_handler)
    app.add_middleware(ErrorShapingMiddleware)
