"""Error Hierarchy — typed, categorized exceptions for every Retos failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Input/auth errors (400-level) are resolved locally; infrastructure errors (500-level) are critical
    - to_response() produces the {"ok": false, "error": CODE, ...} envelope
    - UNAUTHORIZED never distinguishes "missing token" from "unknown token"

Design Decisions:
    - Single hierarchy with RetosError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Machine-readable code is the top-level "error" field: clients branch on it without parsing nested objects
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    room_code: str | None = None
    player_id: str | None = None
    debug_info: dict[str, Any] | None = None


class RetosError(Exception):
    """Base exception for all Retos errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class InvalidInputError(RetosError):
    """Malformed request field. Code is always INVALID_<FIELD>."""
    def __init__(self, code: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class UnauthorizedError(RetosError):
    """Missing, malformed, or unknown session token."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A valid session is required",
            "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class NotAllowedError(RetosError):
    """Authenticated, but lacks the role or ownership the action needs."""
    def __init__(
        self, message: str = "Not allowed", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "NOT_ALLOWED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(RetosError):
    """Requested resource does not exist or is not visible to the caller."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            f"{resource_type.upper()}_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class ConflictError(RetosError):
    """State already transitioned. Callers may treat this as benign."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 409,
        )


class TransitionRejectedError(RetosError):
    """Transition did not happen. 503, never 409: clients treat 409 as benign."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "TRANSITION_REJECTED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 503,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(RetosError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "INTERNAL", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class StorageError(RetosError):
    """Object storage call failed."""
    def __init__(
        self,
        message: str,
        storage_error_type: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Storage error ({storage_error_type}): {message}",
            "INTERNAL", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.storage_error_type = storage_error_type
