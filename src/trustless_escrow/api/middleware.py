"""HTTP middleware: request correlation and domain error translation.

Stack, outermost first:
    RequestIDMiddleware     binds X-Request-ID into the log context
    ErrorHandlerMiddleware  turns EscrowError subclasses into JSON errors
    CORSMiddleware

Error bodies have the shape ``{"error": <code>, "message": <text>}``.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from trustless_escrow.domain.exceptions import (
    EscrowError,
    EscrowNotFoundError,
    InvalidStatusError,
    NotAuthorizedError,
    TransferFailedError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Most specific class first; anything else derived from EscrowError is a 400.
_HTTP_STATUS: tuple[tuple[type[EscrowError], int], ...] = (
    (EscrowNotFoundError, 404),
    (NotAuthorizedError, 403),
    (InvalidStatusError, 409),
    (TransferFailedError, 402),
)


def status_for(exc: EscrowError) -> int:
    """HTTP status code a domain error is reported with."""
    for error_type, status_code in _HTTP_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse or mint a request id, bind it for logging and echo it back."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Report rejected escrow operations as structured JSON."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except EscrowError as exc:
            status_code = status_for(exc)
            logger.warning(
                "request.rejected",
                status_code=status_code,
                code=exc.code,
                error=exc.message,
            )
            return JSONResponse(
                status_code=status_code,
                content={"error": exc.code, "message": exc.message},
            )
        except Exception:
            logger.exception("request.unhandled_error")
            return JSONResponse(
                status_code=500,
                content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
            )


def setup_middleware(app: FastAPI) -> None:
    """Install the middleware stack; the last one added runs first."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
