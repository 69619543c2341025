"""
GUI-specific utilities for the field checker.
"""

from .styling import (
    ERROR_REGION_PROPERTY,
    AccessiblePalette,
    StyleSheets,
    apply_error_region_style,
    refresh_style,
)

__all__ = [
    "ERROR_REGION_PROPERTY",
    "AccessiblePalette",
    "StyleSheets",
    "apply_error_region_style",
    "refresh_style",
]
