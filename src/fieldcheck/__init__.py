"""
Asynchronous validation of Qt form fields.

A Checker watches one form control, asks a validator about its value once the
user pauses editing, and shows the answer in an error region right below it.
"""

from .core.config import CheckerConfig
from .core.threading import threaded_validator
from .core.validation import ValidationRequest, ValidationResult
from .gui.validation import Checker

__version__ = "0.1.0"

__all__ = [
    "Checker",
    "CheckerConfig",
    "ValidationRequest",
    "ValidationResult",
    "threaded_validator",
]
