"""
Centralized error handling and logging infrastructure for the field checker.

This module provides a singleton ErrorHandler that normalizes exceptions into
BaseAppError instances, logs them to a rotating file, and notifies the UI.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import threading
import traceback
from pathlib import Path
from typing import Any, ClassVar

from PySide6.QtCore import QObject, QStandardPaths, Signal

from .config import APP_NAME, APP_ORGANIZATION
from .errors import BaseAppError, from_exception

# Context keys whose values never reach the log
_SENSITIVE_KEYS = ("password", "token", "secret", "key")


class ErrorHandler(QObject):
    """
    Centralized error handler with logging and user message translation.

    Only the GUI thread should talk to the handler; worker threads hand their
    exceptions over through signals first.
    """

    # Emitted on the GUI thread for every handled error
    errorOccurred = Signal(object)  # BaseAppError

    _instance: ClassVar[ErrorHandler | None] = None
    _logger: ClassVar[logging.Logger | None] = None

    def __new__(cls) -> ErrorHandler:
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize the error handler (called only once due to singleton)."""
        if hasattr(self, "_initialized"):
            return

        super().__init__()
        self._initialized = True
        self._original_excepthook = sys.excepthook
        self._original_threading_excepthook = getattr(threading, "excepthook", None)
        self._hooks_installed = False

        # Initialize logging
        self._setup_logging()

    def capture(self, exception: Exception, context: dict[str, Any] | None = None) -> BaseAppError:
        """
        Capture and normalize an exception into a BaseAppError.

        Args:
            exception: The exception to capture
            context: Optional context information

        Returns:
            BaseAppError with normalized metadata
        """
        # Sanitize context to prevent sensitive data leakage
        safe_context = self._sanitize_context(context or {})
        # Convert to BaseAppError using the error hierarchy
        app_error = from_exception(exception, safe_context)

        if not app_error.technical_message:
            app_error.technical_message = f"{type(exception).__name__}: {exception}"

        # Add traceback to context if not already present
        if "traceback" not in app_error.context:
            tb_str = traceback.format_exc()
            if tb_str == "NoneType: None\n":
                # Not inside an except block
                tb_str = f"{type(exception).__name__}: {exception}\n"
            app_error.context["traceback"] = tb_str

        return app_error

    def handle(self, exception: Exception, context: dict[str, Any] | None = None) -> BaseAppError:
        """
        Handle an exception by capturing, logging, and emitting errorOccurred.

        Args:
            exception: The exception to handle
            context: Optional context information

        Returns:
            BaseAppError for further processing
        """
        # Don't handle system exit or keyboard interrupt
        if isinstance(exception, SystemExit | KeyboardInterrupt):
            raise exception

        # Capture and normalize the exception
        app_error = self.capture(exception, context)

        # Log the error with full details
        if self._logger:
            self._logger.error(
                f"[{app_error.code.value}] {app_error.user_message}",
                extra={
                    "app_code": app_error.code.value,
                    "error_type": app_error.type.value,
                    "severity": app_error.severity.value,
                    "retriable": app_error.retriable,
                },
                exc_info=exception,
            )

        # Notify UI components
        self.errorOccurred.emit(app_error)
        return app_error

    def to_user_message(self, app_error: BaseAppError) -> str:
        """Generate a concise, user-friendly message from a BaseAppError."""
        # user_message is already meant for end users
        message = app_error.user_message
        # Add a hint for retriable errors
        if app_error.retriable:
            message += " You can try again."
        return message

    def _setup_logging(self) -> None:
        """Set up rotating file logging in the app data directory."""
        try:
            # Get app data directory
            app_data_location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
            if not app_data_location:
                # Fallback to config location
                config_location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.ConfigLocation)
                app_data_path = Path(config_location) / APP_ORGANIZATION / APP_NAME
            else:
                app_data_path = Path(app_data_location)

            # Create logs directory
            logs_dir = app_data_path / "logs"
            logs_dir.mkdir(parents=True, exist_ok=True)

            # Dedicated logger, kept out of the root handlers
            error_logger = logging.getLogger("fieldcheck.errors")
            error_logger.setLevel(logging.DEBUG)
            error_logger.propagate = False
            ErrorHandler._logger = error_logger

            # Avoid duplicate handlers
            if error_logger.handlers:
                return

            # File handler with rotation
            file_handler = logging.handlers.RotatingFileHandler(
                logs_dir / "errors.log",
                maxBytes=1_048_576,  # 1MB
                backupCount=3,
                encoding="utf-8",
            )
            # Formatter with error code
            formatter = logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | code=%(app_code)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            file_handler.setFormatter(formatter)
            error_logger.addHandler(file_handler)

            # Console handler for debug builds
            if __debug__:
                console_handler = logging.StreamHandler()
                console_handler.setFormatter(formatter)
                console_handler.setLevel(logging.WARNING)  # Only warnings and errors to console
                error_logger.addHandler(console_handler)

        except Exception as e:
            # Fallback to basic logging if setup fails
            logging.basicConfig(level=logging.ERROR)
            logging.error(f"Failed to setup error logging: {e}")

    def _sanitize_context(self, context: dict[str, Any]) -> dict[str, Any]:
        """
        Sanitize context to prevent sensitive data leakage.

        Values are truncated and keys that look like credentials are redacted.
        """
        safe_context: dict[str, Any] = {}
        max_items = 20

        for index, (key, value) in enumerate(context.items()):
            # Limit context size
            if index >= max_items:
                safe_context["..."] = f"({len(context) - max_items} more items truncated)"
                break

            # Skip sensitive keys
            if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
                safe_context[key] = "[REDACTED]"
            elif isinstance(value, str):
                # Limit string length
                safe_context[key] = value if len(value) <= 200 else value[:200] + "..."
            else:
                # Safely represent the value
                try:
                    safe_context[key] = repr(value)[:200]
                except Exception:
                    safe_context[key] = "[REPR_FAILED]"

        return safe_context

    def install_hooks(self) -> None:
        """Route unhandled exceptions of the process through handle()."""
        if self._hooks_installed:
            return
        self._hooks_installed = True

        # Remember the hooks in place right now so restore_hooks() puts exactly these back
        self._original_excepthook = sys.excepthook
        self._original_threading_excepthook = getattr(threading, "excepthook", None)

        def exception_hook(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: Any) -> None:
            # Let keyboard interrupts and non-Exception errors through
            if issubclass(exc_type, KeyboardInterrupt) or not isinstance(exc_value, Exception):
                self._original_excepthook(exc_type, exc_value, exc_traceback)
                return
            try:
                self.handle(exc_value, {"source": "sys.excepthook"})
            except Exception:
                # Fallback to original handler if our handler fails
                self._original_excepthook(exc_type, exc_value, exc_traceback)

        # Install sys.excepthook
        sys.excepthook = exception_hook

        def threading_exception_hook(args: threading.ExceptHookArgs) -> None:
            # Logging only: emitting Qt signals from a foreign thread is not safe here
            if self._logger and isinstance(args.exc_value, Exception):
                app_error = from_exception(args.exc_value, {"thread": args.thread.name if args.thread else "unknown"})
                self._logger.error(
                    f"[{app_error.code.value}] {app_error.user_message}",
                    extra={"app_code": app_error.code.value},
                    exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
                )
            elif self._original_threading_excepthook:
                self._original_threading_excepthook(args)

        # Install threading.excepthook
        threading.excepthook = threading_exception_hook

    def restore_hooks(self) -> None:
        """Restore original exception hooks."""
        self._hooks_installed = False
        sys.excepthook = self._original_excepthook
        if self._original_threading_excepthook:
            threading.excepthook = self._original_threading_excepthook


# Global instance accessor
def get_error_handler() -> ErrorHandler:
    """Get the global ErrorHandler instance."""
    return ErrorHandler()


def setup_error_handling() -> ErrorHandler:
    """
    Set up global error handling for the application.

    This should be called once during application startup.
    """
    handler = get_error_handler()
    handler.install_hooks()
    return handler


def init_logging(level: str = "INFO") -> None:
    """
    Initialize logging configuration.

    Args:
        level: Name of the root log level, e.g. "DEBUG"
    """
    # The ErrorHandler sets up its own file logging when instantiated
    get_error_handler()

    # Set up basic logging for other modules
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
