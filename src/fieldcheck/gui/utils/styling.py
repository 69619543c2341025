"""
Shared styling utilities for checked form fields.

Colors follow WCAG AA contrast ratios. Error regions are styled through the
dynamic ``errorRegion`` property so that marking and unmarking a region only
needs a property change and a re-polish.
"""

from typing import Any, Protocol

# Dynamic property carried by widgets that currently display errors
ERROR_REGION_PROPERTY = "errorRegion"


class StyleableWidget(Protocol):
    """Protocol for widgets that can be styled."""

    def setStyleSheet(self, styleSheet: str) -> None: ...
    def style(self) -> Any: ...


class AccessiblePalette:
    """Color palette with WCAG AA accessibility compliance."""

    ERROR_TEXT = "#721c24"  # Dark red for high contrast
    ERROR_BG = "#f8d7da"  # Light red background
    BORDER_ERROR = "#dc3545"  # Error state border


class StyleSheets:
    """Collection of reusable stylesheet definitions using the accessible palette."""

    @staticmethod
    def get_error_region_style() -> str:
        """
        Get the stylesheet of an error region.

        Only regions flagged with the errorRegion property are colored; an
        unmarked region renders as plain, empty space.
        """
        return f"""
            *[{ERROR_REGION_PROPERTY}="true"] {{
                color: {AccessiblePalette.ERROR_TEXT};
                background-color: {AccessiblePalette.ERROR_BG};
                border-left: 3px solid {AccessiblePalette.BORDER_ERROR};
                padding: 2px 6px;
            }}
            QLabel#errorItem {{
                background-color: transparent;
                border: none;
                padding: 0px;
            }}
        """


def refresh_style(widget: StyleableWidget) -> None:
    """Re-evaluate the stylesheet of a widget after a property change."""
    widget.style().unpolish(widget)
    widget.style().polish(widget)


def apply_error_region_style(widget: StyleableWidget) -> None:
    """
    Apply error region styling to a widget.

    Args:
        widget: The region widget to style
    """
    widget.setStyleSheet(StyleSheets.get_error_region_style())
    refresh_style(widget)
