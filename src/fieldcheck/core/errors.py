"""
Error taxonomy for the field checker.

This module provides the exception hierarchy used to normalize validator
failures and misconfiguration into structured, loggable errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    """Error type categories for consistent error handling."""

    VALIDATION = "validation"
    CONFIG = "config"
    SYSTEM = "system"


class ErrorCode(Enum):
    """Specific error codes for common scenarios."""

    # Validator outcomes
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_RESULT = "INVALID_RESULT"
    VALIDATOR_FAILED = "VALIDATOR_FAILED"
    VALIDATOR_UNAVAILABLE = "VALIDATOR_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Configuration errors
    UNSUPPORTED_FIELD = "UNSUPPORTED_FIELD"
    UNSUPPORTED_LAYOUT = "UNSUPPORTED_LAYOUT"
    CONFIG_INVALID = "CONFIG_INVALID"

    # System errors
    OS_ERROR = "OS_ERROR"
    MEMORY_ERROR = "MEMORY_ERROR"

    # Generic
    UNKNOWN = "UNKNOWN"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class BaseAppError(Exception):
    """
    Base application error with structured metadata.

    Every error raised or normalized by the checker derives from this class so
    that logging and user feedback can rely on a stable shape.
    """

    type: ErrorType
    code: ErrorCode
    user_message: str
    technical_message: str | None = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    retriable: bool = False
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return user-friendly error message."""
        return self.user_message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.type.value}, code={self.code.value}, message='{self.user_message}')"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type.value,
            "code": self.code.value,
            "user_message": self.user_message,
            "technical_message": self.technical_message,
            "severity": self.severity.value,
            "retriable": self.retriable,
            "context": self.context,
        }


class ValidationError(BaseAppError):
    """A validator could not produce a verdict for a value."""

    def __init__(
        self,
        code: ErrorCode,
        user_message: str,
        value: str | None = None,
        technical_message: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.LOW,
        retriable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        context = context or {}
        if value is not None:
            context["value"] = value

        super().__init__(
            type=ErrorType.VALIDATION,
            code=code,
            user_message=user_message,
            technical_message=technical_message,
            severity=severity,
            retriable=retriable,
            context=context,
        )

    @property
    def value(self) -> str | None:
        """Get the field value the failed validation was run for."""
        return self.context.get("value")


class ConfigError(BaseAppError):
    """Misconfiguration of a checker, its field or its settings."""

    def __init__(
        self,
        code: ErrorCode,
        user_message: str,
        technical_message: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(
            type=ErrorType.CONFIG,
            code=code,
            user_message=user_message,
            technical_message=technical_message,
            severity=severity,
            retriable=False,
            context=context or {},
        )


class InternalError(BaseAppError):
    """System level failures that are not caused by user input."""

    def __init__(
        self,
        code: ErrorCode,
        user_message: str,
        technical_message: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        retriable: bool = False,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(
            type=ErrorType.SYSTEM,
            code=code,
            user_message=user_message,
            technical_message=technical_message,
            severity=severity,
            retriable=retriable,
            context=context or {},
        )


# Checked in order, so subclasses come before their bases
_EXCEPTION_MAPPING: list[tuple[type[Exception], ErrorType, ErrorCode, str]] = [
    (TimeoutError, ErrorType.VALIDATION, ErrorCode.TIMEOUT, "The check timed out"),
    (ConnectionError, ErrorType.VALIDATION, ErrorCode.VALIDATOR_UNAVAILABLE, "The validation service is unavailable"),
    (OSError, ErrorType.SYSTEM, ErrorCode.OS_ERROR, "System error occurred"),
    (ValueError, ErrorType.VALIDATION, ErrorCode.INVALID_INPUT, "Invalid input provided"),
    (TypeError, ErrorType.VALIDATION, ErrorCode.INVALID_RESULT, "The validator returned an unusable result"),
    (MemoryError, ErrorType.SYSTEM, ErrorCode.MEMORY_ERROR, "Insufficient memory"),
]


def map_exception(exc: Exception, context: dict[str, Any] | None = None) -> BaseAppError:
    """
    Map a built-in exception to an application error.

    Args:
        exc: The exception to map
        context: Optional context information

    Returns:
        BaseAppError instance with appropriate type and metadata
    """
    context = context or {}

    if isinstance(exc, BaseAppError):
        return exc

    technical_message = f"{type(exc).__name__}: {exc}"
    for exc_type, error_type, error_code, default_message in _EXCEPTION_MAPPING:
        if not isinstance(exc, exc_type):
            continue

        user_message = str(exc) or default_message
        if error_type == ErrorType.VALIDATION:
            return ValidationError(
                code=error_code,
                user_message=user_message,
                technical_message=technical_message,
                context=context,
            )
        return InternalError(
            code=error_code,
            user_message=user_message,
            technical_message=technical_message,
            context=context,
        )

    logger.warning(f"Unknown exception type: {technical_message}")
    return InternalError(
        code=ErrorCode.UNKNOWN,
        user_message="An unexpected error occurred",
        technical_message=technical_message,
        context=context,
    )


def from_exception(exc: Exception, context: dict[str, Any] | None = None) -> BaseAppError:
    """
    Convert any exception to a BaseAppError.

    This is an alias for map_exception for convenience.
    """
    return map_exception(exc, context)


def validator_failure(reason: object, value: str | None = None) -> BaseAppError:
    """
    Normalize the reason a validation request was rejected.

    Requests may be rejected with an exception, an error message or nothing at
    all; all of them end up as a retriable ValidationError.
    """
    if isinstance(reason, Exception):
        error = map_exception(reason, {"value": value} if value is not None else None)
        return error

    message = str(reason) if reason else "The value could not be checked"
    return ValidationError(
        code=ErrorCode.VALIDATOR_FAILED,
        user_message=message,
        value=value,
        technical_message=f"Validation request rejected: {reason!r}",
    )
