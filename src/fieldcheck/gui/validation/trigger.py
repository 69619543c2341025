"""
Debounced validation trigger.

A text field's value can change through typing, clipboard operations, mouse
actions or programmatic edits, and no single Qt event covers all of them. The
trigger therefore listens to a union of interaction events and value-change
signals and coalesces them into one call once the user paused.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from PySide6.QtCore import QEvent, QObject, QTimer, Signal
from PySide6.QtWidgets import QAbstractScrollArea, QWidget

from fieldcheck.core.config import DEFAULT_DEBOUNCE_MS

logger = logging.getLogger(__name__)

TRIGGER_EVENTS = frozenset(
    {
        QEvent.Type.KeyPress,
        QEvent.Type.KeyRelease,
        QEvent.Type.MouseButtonRelease,
        QEvent.Type.FocusIn,
        QEvent.Type.FocusOut,
    }
)

# Value-change signals covering edits that bypass key and mouse events (cut, paste, setText)
VALUE_SIGNALS = (
    "textChanged",
    "editTextChanged",
    "currentIndexChanged",
    "toggled",
    "valueChanged",
)


class DebouncedTrigger(QObject):
    """
    Calls ``callback`` once after qualifying events stopped for ``delay_ms``.

    Every qualifying event restarts the quiet period.

    Signals:
        triggered(): Emitted right before the callback runs
    """

    triggered = Signal()

    def __init__(
        self,
        callback: Callable[[], object],
        delay_ms: int = DEFAULT_DEBOUNCE_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._callback = callback
        self._delay_ms = delay_ms
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_debounce_timeout)

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def attach(self, widgets: Iterable[QWidget]) -> None:
        """
        Start listening to ``widgets``.

        Attaching a widget twice makes each of its events count twice, which
        only restarts the same timer again.
        """
        for widget in widgets:
            widget.installEventFilter(self)
            if isinstance(widget, QAbstractScrollArea):
                # Mouse events of text edits go to their viewport
                widget.viewport().installEventFilter(self)

            for name in VALUE_SIGNALS:
                signal = getattr(widget, name, None)
                if signal is not None and hasattr(signal, "connect"):
                    signal.connect(self.schedule)

            logger.debug(f"Debounced trigger attached to {type(widget).__name__} {widget.objectName()!r}")

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if event.type() in TRIGGER_EVENTS:
            self.schedule()
        return False

    def schedule(self, *args: object) -> None:
        """(Re)start the quiet period."""
        self._timer.start(self._delay_ms)

    def cancel(self) -> None:
        """Drop a pending call."""
        self._timer.stop()

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def fire_now(self) -> None:
        """Run the callback immediately instead of waiting for the quiet period."""
        self._timer.stop()
        self._on_debounce_timeout()

    def _on_debounce_timeout(self) -> None:
        self.triggered.emit()
        self._callback()
