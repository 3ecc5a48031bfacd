"""Error Hierarchy — typed, categorized exceptions for all engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors are raised before any work begins
    - Storage errors always name the operation that failed
    - A lookup miss is NOT an error (ResultStore.get returns None)

Design Decisions:
    - Single hierarchy with FactorialEngineError base: callers catch one type
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    number: int | None = None
    lower: int | None = None
    upper: int | None = None
    path: str | None = None
    debug_info: dict[str, Any] | None = None


class FactorialEngineError(Exception):
    """Base exception for all factorial engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a plain dict the presentation layer can render or log."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "number": self.context.number,
                    "lower": self.context.lower,
                    "upper": self.context.upper,
                    "path": self.context.path,
                },
            }
        }


# ─── Validation Errors ──────────────────────────────────────────

class InvalidInputError(FactorialEngineError):
    """Factorial input is negative or not an integer."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )


class InvalidRangeError(FactorialEngineError):
    """Range bounds are negative or inverted."""
    def __init__(self, lower: int, upper: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.lower = lower
        ctx.upper = upper
        super().__init__(
            f"Invalid range [{lower}, {upper}]: bounds must be non-negative "
            "and lower must not exceed upper",
            "INVALID_RANGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx,
        )
        self.lower = lower
        self.upper = upper


# ─── Infrastructure Errors ──────────────────────────────────────

class StorageError(FactorialEngineError):
    """Persistence layer could not complete a read, write or export."""
    def __init__(
        self,
        message: str,
        operation: str,
        context: ErrorContext | None = None,
        code: str = "STORAGE_ERROR",
    ):
        super().__init__(
            f"Storage {operation} failed: {message}",
            code, ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation


class ExportError(StorageError):
    """Export sink could not be written."""
    def __init__(self, message: str, path: str | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.path = path
        super().__init__(message, "export", ctx, code="EXPORT_ERROR")
        self.path = path
