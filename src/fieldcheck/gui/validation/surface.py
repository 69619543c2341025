"""
Rendering surface for error regions.

ErrorDisplay decides what an error region should look like; the surface
knows how to build, place, fill and animate region widgets. QtErrorSurface
places regions right after the checked field in the field's QBoxLayout and
animates them by sliding their maximum height.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from PySide6.QtCore import QAbstractAnimation, QEasingCurve, QPropertyAnimation, Qt
from PySide6.QtWidgets import QBoxLayout, QFrame, QLabel, QLayout, QVBoxLayout, QWidget

from fieldcheck.core.config import DEFAULT_ANIMATION_MS
from fieldcheck.core.errors import ConfigError, ErrorCode
from fieldcheck.gui.utils.styling import ERROR_REGION_PROPERTY, apply_error_region_style, refresh_style

logger = logging.getLogger(__name__)

# QWIDGETSIZE_MAX, the "no limit" value of maximumHeight
_UNLIMITED_HEIGHT = 16777215

# Dynamic property remembering the shape a region was created with
_SHAPE_PROPERTY = "regionShape"

LIST_BULLET = "• "


class RegionShape(Enum):
    """How a set of messages is laid out."""

    INLINE = "inline"  # a single flat label
    LIST = "list"  # one item per message

    @classmethod
    def for_messages(cls, messages: Sequence[str]) -> RegionShape:
        return cls.INLINE if len(messages) == 1 else cls.LIST


@dataclass
class AnimationStep:
    """
    One animated change of a region.

    ``animation`` is not started yet and may be None when there is nothing to
    animate. ``finish`` applies the end state and must be run once the
    animation is over, or instead of it when a transition is cut short.
    """

    animation: QAbstractAnimation | None
    finish: Callable[[], None]


class ErrorSurface(ABC):
    """Primitives the error display needs from the UI toolkit."""

    animation_ms: int

    @abstractmethod
    def locate(self, field: QWidget) -> list[QWidget]:
        """
        Find the regions already displayed after ``field`` or create one.

        Returns:
            The region candidates in layout order; never empty
        """

    @abstractmethod
    def create(self, shape: RegionShape) -> QWidget:
        """Create a detached, hidden, empty region of the given shape."""

    @abstractmethod
    def insert_after(self, anchor: QWidget, region: QWidget) -> None: ...

    @abstractmethod
    def detach(self, region: QWidget) -> None: ...

    @abstractmethod
    def shape_of(self, region: QWidget) -> RegionShape: ...

    @abstractmethod
    def populate(self, region: QWidget, messages: Sequence[str]) -> None:
        """Replace the content of ``region`` with ``messages`` in order."""

    @abstractmethod
    def clear(self, region: QWidget) -> None:
        """Empty ``region`` and drop its error marking."""

    @abstractmethod
    def is_marked(self, region: QWidget) -> bool: ...

    @abstractmethod
    def set_marked(self, region: QWidget, marked: bool) -> None: ...

    @abstractmethod
    def rendered_text(self, region: QWidget) -> str:
        """Text a user currently reads in ``region``."""

    @abstractmethod
    def render_text(self, shape: RegionShape, messages: Sequence[str]) -> str:
        """Text a region of ``shape`` would show for ``messages``."""

    @abstractmethod
    def reveal(self, region: QWidget) -> AnimationStep: ...

    @abstractmethod
    def collapse(self, region: QWidget) -> AnimationStep: ...


def find_layout_slot(widget: QWidget) -> tuple[QBoxLayout, int]:
    """
    Find the box layout holding ``widget`` and its index in it.

    Raises:
        ConfigError: If the widget is not managed by a QBoxLayout
    """
    parent = widget.parentWidget()
    root = parent.layout() if parent is not None else None
    slot = _search_layout(root, widget) if root is not None else None

    if slot is None:
        raise ConfigError(
            code=ErrorCode.UNSUPPORTED_LAYOUT,
            user_message="The field must be placed in a layout",
            technical_message=f"{type(widget).__name__} {widget.objectName()!r} is not managed by a layout",
        )

    layout, index = slot
    if not isinstance(layout, QBoxLayout):
        raise ConfigError(
            code=ErrorCode.UNSUPPORTED_LAYOUT,
            user_message="The field must be placed in a box layout",
            technical_message=f"{type(layout).__name__} cannot hold an error region after the field",
        )
    return layout, index


def _search_layout(layout: QLayout, widget: QWidget) -> tuple[QLayout, int] | None:
    for index in range(layout.count()):
        item = layout.itemAt(index)
        if item.widget() is widget:
            return layout, index
        child = item.layout()
        if child is not None:
            found = _search_layout(child, widget)
            if found is not None:
                return found
    return None


class QtErrorSurface(ErrorSurface):
    """
    Error regions made of Qt widgets.

    An inline region is a QLabel. A list region is a QFrame holding one
    QLabel per message. Messages are shown as plain text.
    """

    def __init__(self, animation_ms: int = DEFAULT_ANIMATION_MS) -> None:
        self.animation_ms = animation_ms

    def locate(self, field: QWidget) -> list[QWidget]:
        layout, index = find_layout_slot(field)

        regions: list[QWidget] = []
        for position in range(index + 1, layout.count()):
            candidate = layout.itemAt(position).widget()
            if candidate is None or not self.is_marked(candidate):
                break
            regions.append(candidate)

        if regions:
            logger.debug(f"Reusing {len(regions)} error region(s) after {field.objectName()!r}")
            return regions

        region = self.create(RegionShape.INLINE)
        layout.insertWidget(index + 1, region)
        return [region]

    def create(self, shape: RegionShape) -> QWidget:
        region: QWidget
        if shape is RegionShape.INLINE:
            label = QLabel()
            label.setObjectName("errorInline")
            label.setTextFormat(Qt.TextFormat.PlainText)
            label.setWordWrap(True)
            region = label
        else:
            region = QFrame()
            region.setObjectName("errorList")
            item_layout = QVBoxLayout(region)
            item_layout.setContentsMargins(0, 0, 0, 0)
            item_layout.setSpacing(2)

        region.setProperty(_SHAPE_PROPERTY, shape.value)
        region.setAccessibleName("Field errors")
        apply_error_region_style(region)
        region.hide()
        return region

    def insert_after(self, anchor: QWidget, region: QWidget) -> None:
        layout, index = find_layout_slot(anchor)
        layout.insertWidget(index + 1, region)

    def detach(self, region: QWidget) -> None:
        layout, _ = find_layout_slot(region)
        layout.removeWidget(region)
        region.hide()
        region.setParent(None)

    def shape_of(self, region: QWidget) -> RegionShape:
        stored = region.property(_SHAPE_PROPERTY)
        if stored:
            return RegionShape(stored)
        return RegionShape.INLINE if isinstance(region, QLabel) else RegionShape.LIST

    def populate(self, region: QWidget, messages: Sequence[str]) -> None:
        if isinstance(region, QLabel):
            region.setText("".join(messages))
            return

        self._remove_items(region)
        item_layout = region.layout()
        for message in messages:
            item = QLabel(LIST_BULLET + message, region)
            item.setObjectName("errorItem")
            item.setTextFormat(Qt.TextFormat.PlainText)
            item.setWordWrap(True)
            item_layout.addWidget(item)

    def clear(self, region: QWidget) -> None:
        if isinstance(region, QLabel):
            region.clear()
        else:
            self._remove_items(region)
        self.set_marked(region, False)

    def items(self, region: QWidget) -> list[QLabel]:
        """Item labels of a list region, in display order."""
        item_layout = region.layout()
        if item_layout is None:
            return []
        labels = (item_layout.itemAt(i).widget() for i in range(item_layout.count()))
        return [label for label in labels if isinstance(label, QLabel)]

    def _remove_items(self, region: QWidget) -> None:
        item_layout = region.layout()
        for label in self.items(region):
            item_layout.removeWidget(label)
            label.hide()
            label.deleteLater()

    def is_marked(self, region: QWidget) -> bool:
        return bool(region.property(ERROR_REGION_PROPERTY))

    def set_marked(self, region: QWidget, marked: bool) -> None:
        region.setProperty(ERROR_REGION_PROPERTY, marked)
        refresh_style(region)

    def rendered_text(self, region: QWidget) -> str:
        if isinstance(region, QLabel):
            return region.text()
        return "".join(label.text() for label in self.items(region))

    def render_text(self, shape: RegionShape, messages: Sequence[str]) -> str:
        if shape is RegionShape.INLINE:
            return "".join(messages)
        return "".join(LIST_BULLET + message for message in messages)

    def reveal(self, region: QWidget) -> AnimationStep:
        def finish() -> None:
            region.setMaximumHeight(_UNLIMITED_HEIGHT)
            region.show()

        already_shown = not region.isHidden() and region.maximumHeight() == _UNLIMITED_HEIGHT
        if already_shown or self.animation_ms <= 0:
            return AnimationStep(None, finish)

        animation = QPropertyAnimation(region, b"maximumHeight")
        animation.setDuration(self.animation_ms)
        animation.setStartValue(0)
        animation.setEndValue(max(region.sizeHint().height(), 1))
        animation.setEasingCurve(QEasingCurve.Type.InOutQuad)

        def on_state_changed(new_state: QAbstractAnimation.State, old_state: QAbstractAnimation.State) -> None:
            if new_state == QAbstractAnimation.State.Running and old_state == QAbstractAnimation.State.Stopped:
                region.setMaximumHeight(0)
                region.show()

        animation.stateChanged.connect(on_state_changed)
        return AnimationStep(animation, finish)

    def collapse(self, region: QWidget) -> AnimationStep:
        def finish() -> None:
            region.hide()
            region.setMaximumHeight(_UNLIMITED_HEIGHT)

        if region.isHidden() or self.animation_ms <= 0:
            return AnimationStep(None, finish)

        animation = QPropertyAnimation(region, b"maximumHeight")
        animation.setDuration(self.animation_ms)
        animation.setStartValue(max(region.height(), 1))
        animation.setEndValue(0)
        animation.setEasingCurve(QEasingCurve.Type.InOutQuad)
        return AnimationStep(animation, finish)
