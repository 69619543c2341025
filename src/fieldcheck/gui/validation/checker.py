"""
Asynchronous validation of a single form field.

Checker ties together the debounced trigger, the validation session (one
request in flight at a time, stale answers discarded) and the error display
of one field.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from functools import partial
from typing import Any

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import QComboBox, QLineEdit, QPlainTextEdit, QTextEdit, QWidget

from fieldcheck.core.config import CheckerConfig
from fieldcheck.core.error_handler import get_error_handler
from fieldcheck.core.errors import ConfigError, ErrorCode, validator_failure
from fieldcheck.core.validation import ValidationRequest, ValidationResult, Validator, as_request, rejected_request

from .error_display import ErrorDisplay
from .surface import ErrorSurface, QtErrorSurface
from .trigger import DebouncedTrigger

logger = logging.getLogger(__name__)


def read_value(field: QWidget) -> str:
    """
    Read the current text of a supported form control.

    Raises:
        ConfigError: If the widget is not a text control
    """
    if isinstance(field, QLineEdit):
        return field.text()
    if isinstance(field, (QPlainTextEdit, QTextEdit)):
        return field.toPlainText()
    if isinstance(field, QComboBox):
        return field.currentText()
    raise ConfigError(
        code=ErrorCode.UNSUPPORTED_FIELD,
        user_message="Only text fields can be checked",
        technical_message=f"Cannot read a value from {type(field).__name__}",
    )


class Checker(QObject):
    """
    Validates a form field asynchronously and shows the outcome below it.

    The validator is called with the field value and answers with a
    ValidationRequest (or an immediate result). Only the answer for the most
    recent call is ever displayed: older requests are aborted when they
    support it, and ignored when they answer anyway.

    Signals:
        validationStarted(str): A validator call was issued for the value
        validationCompleted(str, bool): The value was checked; carries validity
        validationFailed(str, object): The validator could not check the value;
            carries the value and the normalized BaseAppError
    """

    validationStarted = Signal(str)
    validationCompleted = Signal(str, bool)
    validationFailed = Signal(str, object)

    def __init__(
        self,
        field: QWidget,
        validator: Validator,
        *,
        config: CheckerConfig | None = None,
        surface: ErrorSurface | None = None,
        parent: QObject | None = None,
    ) -> None:
        """
        Args:
            field: The form control to check; must live in a QBoxLayout
            validator: Called with the field value for every check
            config: Debounce and animation timings
            surface: Rendering surface for the error region
            parent: Owner of the checker; defaults to the field

        Raises:
            ConfigError: If the field is not a supported control or layout
        """
        super().__init__(parent if parent is not None else field)
        self._config = config or CheckerConfig()
        self._field = field
        self._validator = validator

        self._last_committed_value: str | None = read_value(field)
        self._in_flight: ValidationRequest | None = None

        self._display = ErrorDisplay(field, surface or QtErrorSurface(self._config.animation_ms), parent=self)
        self._trigger = DebouncedTrigger(self.validate, self._config.debounce_ms, parent=self)
        self._error_handler = get_error_handler()

    @property
    def field(self) -> QWidget:
        return self._field

    @property
    def config(self) -> CheckerConfig:
        return self._config

    @property
    def display(self) -> ErrorDisplay:
        return self._display

    @property
    def trigger(self) -> DebouncedTrigger:
        return self._trigger

    @property
    def last_committed_value(self) -> str | None:
        """Value the displayed errors belong to; None after a failed check."""
        return self._last_committed_value

    @property
    def in_flight_request(self) -> ValidationRequest | None:
        return self._in_flight

    def attach(self, extra_widgets: QWidget | Iterable[QWidget] | None = None) -> Checker:
        """
        Validate the field whenever the user pauses editing it.

        Args:
            extra_widgets: Additional widgets whose changes also trigger a
                check, e.g. a checkbox that makes the field relevant

        Returns:
            The checker itself, for chaining
        """
        widgets: list[QWidget] = [self._field]
        if isinstance(extra_widgets, QWidget):
            widgets.append(extra_widgets)
        elif extra_widgets is not None:
            widgets.extend(extra_widgets)

        self._trigger.attach(widgets)
        return self

    def validate(self) -> ValidationRequest | None:
        """
        Check the current value of the field.

        An empty value counts as valid without asking the validator.

        Returns:
            The pending request, or None when the value is empty
        """
        value = read_value(self._field)

        previous = self._in_flight
        self._in_flight = None
        if previous is not None:
            # Cancellation is best-effort; a stale answer is discarded anyway
            abort = getattr(previous, "abort", None)
            if callable(abort):
                try:
                    abort()
                except Exception:
                    logger.debug("Aborting a superseded validation request failed", exc_info=True)

        if value == "":
            self._last_committed_value = value
            self.set_errors([])
            return None

        self.validationStarted.emit(value)
        try:
            request = as_request(value, self._validator(value))
        except Exception as e:
            request = rejected_request(value, e)

        self._in_flight = request
        request.then(
            partial(self._on_validation_resolved, request, value),
            partial(self._on_validation_rejected, request, value),
        )
        return request

    def set_errors(self, messages: Sequence[str], force_replacement: bool = False) -> Checker:
        """
        Display ``messages`` below the field.

        Returns:
            The checker itself, for chaining
        """
        self._display.set_errors(messages, force_replacement)
        return self

    def _on_validation_resolved(self, request: ValidationRequest, value: str, result: ValidationResult) -> None:
        force_replacement = value != self._last_committed_value

        if self._in_flight is not request:
            logger.debug("Discarding result of a superseded validation request")
            return
        self._in_flight = None
        self._last_committed_value = value

        self.set_errors([] if result.valid else list(result.messages), force_replacement)
        self.validationCompleted.emit(value, result.valid)

    def _on_validation_rejected(self, request: ValidationRequest, value: str, reason: Any) -> None:
        if self._in_flight is not request:
            logger.debug("Discarding failure of a superseded validation request")
            return
        self._in_flight = None
        self._last_committed_value = None

        if isinstance(reason, Exception):
            app_error = self._error_handler.capture(reason, {"value": value})
        else:
            app_error = validator_failure(reason, value)
        logger.warning(f"Validation request failed [{app_error.code.value}]: {app_error.technical_message}")

        self.set_errors([])
        self.validationFailed.emit(value, app_error)
