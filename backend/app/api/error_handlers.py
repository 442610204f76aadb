"""Error Handlers — map every failure onto the Retos response envelope.

Invariants:
    - Every error body is {"ok": false, "error": CODE, "message", "category",
      "severity", ...} so clients branch on `error`, never on message text
    - RetosError keeps its own http_status (401/403/404/409/503/500)
    - RequestValidationError → 400 VALIDATION_ERROR; in practice only query
      parameters reach FastAPI validation, JSON bodies go through core/validators
    - Unhandled exceptions → 500 INTERNAL with a fixed message (no stack or SQL)

Design Decisions:
    - Registered from main.py via register_error_handlers(app): one call site
    - 4xx logged at WARNING, 5xx at ERROR: denied requests are routine traffic,
      broken storage or database is not
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import ErrorCategory, ErrorSeverity, RetosError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    _register_retos_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_retos_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RetosError)
    async def retos_error_handler(request: Request, exc: RetosError):
        level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
        logger.log(
            level,
            f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "room_code": exc.context.room_code,
                "player_id": exc.context.player_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Rejected parameters on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_validation_envelope(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.url.path}",
            exc_info=exc,
            extra={"error_code": "INTERNAL", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "ok": False,
                "error": "INTERNAL",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        )


def _validation_envelope(exc: RequestValidationError) -> dict:
    """Envelope plus one entry per offending parameter (e.g. query.code)."""
    return {
        "ok": False,
        "error": "VALIDATION_ERROR",
        "message": "Invalid request parameters",
        "category": ErrorCategory.VALIDATION.value,
        "severity": ErrorSeverity.WARNING.value,
        "fields": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
            }
            for e in exc.errors()
        ],
    }
