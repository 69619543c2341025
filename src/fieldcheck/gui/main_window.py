"""
Demo window for the field checker.

Shows a sign-up form whose username field is checked against a simulated
remote service while the user types.
"""

import logging
import re
import time
from typing import Any

from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QCheckBox, QLabel, QLineEdit, QMainWindow, QVBoxLayout, QWidget

from fieldcheck.core.config import CheckerConfig
from fieldcheck.core.error_handler import get_error_handler
from fieldcheck.core.errors import BaseAppError
from fieldcheck.core.threading import ThreadedValidator, threaded_validator
from fieldcheck.core.validation import ValidationResult
from fieldcheck.gui.validation import Checker

logger = logging.getLogger(__name__)

TAKEN_USERNAMES = frozenset({"admin", "root", "guest"})
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def check_username(
    value: str,
    *,
    latency: float = 0.3,
    taken: frozenset[str] = TAKEN_USERNAMES,
    online: bool = True,
) -> ValidationResult:
    """
    Simulated server-side username check.

    Sleeps for ``latency`` seconds to stand in for a network round trip.

    Raises:
        ConnectionError: If the service is offline
    """
    if latency:
        time.sleep(latency)
    if not online:
        raise ConnectionError("The username service is unreachable.")

    messages: list[str] = []
    if len(value) < 3:
        messages.append("Usernames must be at least 3 characters long.")
    if not USERNAME_PATTERN.match(value):
        messages.append("Usernames may only contain letters, digits, '.', '-' and '_'.")
    if value.lower() in TAKEN_USERNAMES | taken:
        messages.append(f"The username '{value}' is already taken.")
    return ValidationResult(valid=not messages, messages=tuple(messages))


class MainWindow(QMainWindow):
    """Sign-up form with a checked username field."""

    def __init__(self, config: CheckerConfig | None = None, **check_options: Any) -> None:
        super().__init__()
        self.setWindowTitle("Field checker demo")

        central = QWidget()
        central.setObjectName("signupForm")
        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(6)

        layout.addWidget(QLabel("Username"))
        self.username_edit = QLineEdit()
        self.username_edit.setObjectName("usernameEdit")
        self.username_edit.setPlaceholderText("Pick a username")
        layout.addWidget(self.username_edit)

        self.create_account_check = QCheckBox("Create a new account")
        self.create_account_check.setChecked(True)
        layout.addWidget(self.create_account_check)
        layout.addStretch()
        self.setCentralWidget(central)

        self.validator: ThreadedValidator = threaded_validator(
            lambda value: check_username(value, **check_options), parent=self
        )
        self.checker = Checker(self.username_edit, self.validator, config=config).attach(self.create_account_check)
        self.checker.validationCompleted.connect(self._on_validation_completed)
        self.checker.validationFailed.connect(self._on_validation_failed)

        self.resize(420, 220)

    def _on_validation_completed(self, value: str, valid: bool) -> None:
        logger.info(f"Username check finished: valid={valid}")
        self.statusBar().clearMessage()

    def _on_validation_failed(self, value: str, app_error: BaseAppError) -> None:
        # The field itself shows no errors while its state is unknown
        self.statusBar().showMessage(get_error_handler().to_user_message(app_error))

    def closeEvent(self, event: QCloseEvent) -> None:
        self.checker.trigger.cancel()
        self.validator.wait_for_workers()
        super().closeEvent(event)
