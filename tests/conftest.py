"""
Shared fixtures for the field checker tests.
"""

import os

# Set offscreen platform to prevent display errors on headless systems
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402
from PySide6.QtCore import QStandardPaths  # noqa: E402
from PySide6.QtWidgets import QLabel, QLineEdit, QVBoxLayout, QWidget  # noqa: E402

from fieldcheck.core.config import CheckerConfig  # noqa: E402
from fieldcheck.core.validation import ValidationRequest  # noqa: E402

# Keep settings and log files out of the user's real directories
QStandardPaths.setTestModeEnabled(True)


class ManualValidator:
    """Validator whose requests are settled by the test."""

    def __init__(self, request_class: type[ValidationRequest] = ValidationRequest) -> None:
        self.request_class = request_class
        self.calls: list[str] = []
        self.requests: list[ValidationRequest] = []

    def __call__(self, value: str) -> ValidationRequest:
        self.calls.append(value)
        request = self.request_class(value)
        self.requests.append(request)
        return request

    @property
    def last(self) -> ValidationRequest:
        return self.requests[-1]


class AbortableRequest(ValidationRequest):
    """Request recording abort() calls."""

    def __init__(self, value: str = "") -> None:
        super().__init__(value)
        self.aborted = False

    def abort(self) -> None:
        self.aborted = True


@pytest.fixture
def form(qtbot):
    """A container with a line edit followed by an unrelated label."""
    container = QWidget()
    layout = QVBoxLayout(container)
    field = QLineEdit()
    field.setObjectName("field")
    layout.addWidget(field)
    layout.addWidget(QLabel("Next row"))
    qtbot.addWidget(container)
    return container


@pytest.fixture
def field(form):
    return form.findChild(QLineEdit, "field")


@pytest.fixture
def instant_config():
    """No animations and a short quiet period."""
    return CheckerConfig(debounce_ms=50, animation_ms=0)


@pytest.fixture
def manual_validator():
    return ManualValidator()


@pytest.fixture
def abortable_validator():
    return ManualValidator(AbortableRequest)
