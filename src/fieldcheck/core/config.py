"""
Configuration defaults for the field checker.

This module provides the application identifiers used by QSettings, the
default settings, and the typed CheckerConfig consumed by Checker.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QCoreApplication

from .errors import ConfigError, ErrorCode

# Application identifiers for QSettings
APP_ORGANIZATION = "FieldCheck"
APP_NAME = "Checker"

# Quiet period before a burst of edits triggers a validation
DEFAULT_DEBOUNCE_MS = 1000

# Duration of the expand/collapse animations of the error region
DEFAULT_ANIMATION_MS = 400

DEFAULT_CONFIG: dict[str, Any] = {
    "debounce_ms": DEFAULT_DEBOUNCE_MS,
    "animation_ms": DEFAULT_ANIMATION_MS,
    "log_level": "INFO",  # Options: "DEBUG", "INFO", "WARNING", "ERROR"
}


@dataclass(frozen=True)
class CheckerConfig:
    """Timing settings for a single Checker."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    animation_ms: int = DEFAULT_ANIMATION_MS

    def __post_init__(self) -> None:
        for name in ("debounce_ms", "animation_ms"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID,
                    user_message=f"'{name}' must be a non-negative number of milliseconds",
                    technical_message=f"{name}={value!r}",
                    context={"key": name},
                )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CheckerConfig:
        """
        Build a config from a settings mapping.

        Unknown keys are ignored; missing keys fall back to the defaults.

        Raises:
            ConfigError: If a value is not a non-negative integer
        """
        values: dict[str, Any] = {}
        for key in ("debounce_ms", "animation_ms"):
            if key not in data:
                continue
            try:
                values[key] = int(data[key])
            except (TypeError, ValueError) as e:
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID,
                    user_message=f"'{key}' must be a number of milliseconds",
                    technical_message=str(e),
                    context={"key": key},
                ) from e
        return cls(**values)


def setup_qsettings() -> None:
    """
    Configure QSettings with application identifiers.

    This should be called early in application startup to ensure
    QSettings uses the correct organization and application names.
    """
    QCoreApplication.setOrganizationName(APP_ORGANIZATION)
    QCoreApplication.setApplicationName(APP_NAME)
