"""
Tests for ErrorHandler core functionality.

Tests cover:
- Singleton pattern behavior
- Exception capture and normalization
- Context sanitization
- Signal emission on handle()
"""

import sys
import threading

import pytest

from fieldcheck.core.error_handler import ErrorHandler, get_error_handler, setup_error_handling
from fieldcheck.core.errors import BaseAppError, ErrorCode, ErrorType, ValidationError


class TestErrorHandlerSingleton:
    """Test the singleton pattern implementation."""

    def test_singleton_pattern(self, qapp):
        assert ErrorHandler() is ErrorHandler()

    def test_get_error_handler_returns_singleton(self, qapp):
        assert get_error_handler() is ErrorHandler()


class TestErrorCapture:
    """Test exception capture and normalization."""

    def test_capture_maps_builtin_exception(self, qapp):
        app_error = get_error_handler().capture(ConnectionError("service down"))

        assert isinstance(app_error, ValidationError)
        assert app_error.code is ErrorCode.VALIDATOR_UNAVAILABLE
        assert app_error.technical_message == "ConnectionError: service down"
        assert "traceback" in app_error.context

    def test_capture_keeps_app_errors(self, qapp):
        original = ValidationError(ErrorCode.VALIDATOR_FAILED, "no verdict")
        assert get_error_handler().capture(original) is original

    def test_capture_sanitizes_context(self, qapp):
        app_error = get_error_handler().capture(
            RuntimeError("boom"),
            {"password": "hunter2", "value": "x" * 500},
        )

        assert app_error.type is ErrorType.SYSTEM
        assert app_error.context["password"] == "[REDACTED]"
        assert app_error.context["value"].endswith("...")
        assert len(app_error.context["value"]) == 203


class TestErrorHandling:
    """Test handle() and user messages."""

    def test_handle_emits_signal(self, qtbot):
        handler = get_error_handler()

        with qtbot.waitSignal(handler.errorOccurred, timeout=1000) as blocker:
            handler.handle(TimeoutError())

        emitted = blocker.args[0]
        assert isinstance(emitted, BaseAppError)
        assert emitted.code is ErrorCode.TIMEOUT

    def test_handle_reraises_keyboard_interrupt(self, qapp):
        with pytest.raises(KeyboardInterrupt):
            get_error_handler().handle(KeyboardInterrupt())

    def test_user_message_hint_for_retriable_errors(self, qapp):
        handler = get_error_handler()
        retriable = ValidationError(ErrorCode.TIMEOUT, "The check timed out.")

        assert handler.to_user_message(retriable) == "The check timed out. You can try again."


class TestExceptionHooks:
    """Test installing and restoring the global exception hooks."""

    def test_install_and_restore_hooks(self, qapp):
        original_excepthook = sys.excepthook
        original_threading_hook = threading.excepthook

        handler = setup_error_handling()
        try:
            assert handler is get_error_handler()
            installed = sys.excepthook
            handler.install_hooks()
            assert sys.excepthook is installed
            assert sys.excepthook is not original_excepthook
            assert threading.excepthook is not original_threading_hook
        finally:
            handler.restore_hooks()

        assert sys.excepthook is original_excepthook
        assert threading.excepthook is original_threading_hook

    def test_excepthook_routes_through_handle(self, qtbot):
        handler = get_error_handler()
        handler.install_hooks()
        try:
            with qtbot.waitSignal(handler.errorOccurred, timeout=1000) as blocker:
                error = ConnectionError("lookup service down")
                sys.excepthook(type(error), error, None)
        finally:
            handler.restore_hooks()

        assert blocker.args[0].code is ErrorCode.VALIDATOR_UNAVAILABLE
        assert blocker.args[0].context["source"] == "sys.excepthook"
