"""Render `ShareGateError`s as `{"error": {"kind", "message"}}` bodies."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sharegate.core.errors import (
    AuthorizationError,
    ClassificationLookupFailure,
    DuplicateRequestError,
    GrantFailure,
    InvalidRequestError,
    InvalidTokenError,
    NotFoundError,
    OrchestrationError,
    ShareGateError,
    TransactionConflict,
)
from sharegate.observability.tracing import log_event

# First match wins, so subclasses go before their bases.
STATUS_BY_ERROR: list[tuple[type[ShareGateError], int]] = [
    (NotFoundError, 404),
    (InvalidTokenError, 404),
    (TransactionConflict, 409),
    (DuplicateRequestError, 409),
    (OrchestrationError, 409),
    (AuthorizationError, 403),
    (InvalidRequestError, 400),
    (GrantFailure, 502),
    (ClassificationLookupFailure, 502),
]


def status_for(exc: ShareGateError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def error_body(kind: str, message: str) -> dict:
    return {"error": {"kind": kind, "message": message}}


async def sharegate_error_handler(request: Request, exc: ShareGateError) -> JSONResponse:
    status = status_for(exc)
    # Stale tokens look like any other missing request to API callers.
    kind = "not_found" if isinstance(exc, InvalidTokenError) else exc.kind

    log_event(
        "api.error",
        trace_id=None,
        path=request.url.path,
        status=status,
        kind=kind,
        error=str(exc),
    )
    return JSONResponse(status_code=status, content=error_body(kind, str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShareGateError, sharegate_error_handler)
