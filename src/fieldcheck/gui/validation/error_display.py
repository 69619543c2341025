"""
Error display reconciliation.

ErrorDisplay owns the error region of one field and updates it to show a new
list of messages with as little visual churn as possible: the region is
updated in place when nothing visible changes, and replaced with an animated
swap when its shape or its text changes or when the caller asks for a
visible refresh.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Sequence
from functools import partial

from PySide6.QtCore import QObject, QParallelAnimationGroup, Signal, Slot
from PySide6.QtWidgets import QWidget

from .surface import AnimationStep, ErrorSurface, RegionShape

logger = logging.getLogger(__name__)


class _Phase:
    """Animation steps that run side by side, followed by a completion action."""

    def __init__(self, steps: Sequence[AnimationStep], then: Callable[[], None] | None) -> None:
        self.steps = list(steps)
        self.then = then

    def animations(self) -> list:
        return [step.animation for step in self.steps if step.animation is not None]

    def complete(self) -> None:
        for step in self.steps:
            step.finish()
        if self.then is not None:
            self.then()


class Transition(QObject):
    """
    Sequence of animation phases.

    Each phase starts only after the previous one finished and its completion
    action ran. Phases without animations complete synchronously.
    """

    finished = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._phases: deque[_Phase] = deque()
        self._group: QParallelAnimationGroup | None = None
        self._started = False
        self._done = False

    def add_phase(self, steps: Sequence[AnimationStep] = (), then: Callable[[], None] | None = None) -> Transition:
        self._phases.append(_Phase(steps, then))
        return self

    def is_running(self) -> bool:
        return self._started and not self._done

    def start(self) -> None:
        self._started = True
        self._advance()

    def fast_forward(self) -> None:
        """Stop the running animation and apply the end state of every remaining phase."""
        if self._group is not None:
            self._group.finished.disconnect(self._on_phase_finished)
            self._group.stop()
            self._group.deleteLater()
            self._group = None

        while self._phases:
            self._phases.popleft().complete()
        self._finish()

    def _advance(self) -> None:
        while self._phases:
            animations = self._phases[0].animations()
            if not animations:
                self._phases.popleft().complete()
                continue

            group = QParallelAnimationGroup(self)
            for animation in animations:
                group.addAnimation(animation)
            group.finished.connect(self._on_phase_finished)
            self._group = group
            group.start()
            return

        self._finish()

    @Slot()
    def _on_phase_finished(self) -> None:
        if self._group is not None:
            self._group.deleteLater()
            self._group = None
        if self._phases:
            self._phases.popleft().complete()
        self._advance()

    def _finish(self) -> None:
        if self._done:
            return
        self._done = True
        self.finished.emit()


class ErrorDisplay(QObject):
    """
    Reconciles the error region of a single field.

    Exactly one region is current. While a replacement is in progress the
    superseded region collapses first and is detached before the new one
    expands.

    A call made while a previous transition is still animating cuts that
    transition short: its animations stop, its end state is applied, and the
    new messages are reconciled against the resulting widgets.

    Signals:
        errorsChanged(list): Messages now displayed (empty when cleared)
    """

    errorsChanged = Signal(list)

    def __init__(self, field: QWidget, surface: ErrorSurface, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._surface = surface
        self._regions = surface.locate(field)
        self._messages: list[str] = []
        self._transition: Transition | None = None

    @property
    def surface(self) -> ErrorSurface:
        return self._surface

    @property
    def current_region(self) -> QWidget:
        return self._regions[-1]

    @property
    def regions(self) -> list[QWidget]:
        """Region candidates currently owned, in layout order."""
        return list(self._regions)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def is_animating(self) -> bool:
        return self._transition is not None and self._transition.is_running()

    def set_errors(self, messages: Sequence[str], force_replacement: bool = False) -> ErrorDisplay:
        """
        Display ``messages`` in the error region.

        Args:
            messages: Messages in display order; empty clears the region
            force_replacement: Swap in a fresh region even if the content is
                unchanged, so the user sees the check ran again. Ignored when
                ``messages`` is empty.

        Returns:
            The display itself, for chaining
        """
        messages = [str(message) for message in messages]
        self._settle_transition()

        transition = Transition(self)
        if messages:
            self._plan_show(transition, messages, force_replacement)
        else:
            self._plan_clear(transition)

        self._messages = messages
        self._transition = transition
        transition.start()

        self.errorsChanged.emit(list(messages))
        return self

    def _plan_clear(self, transition: Transition) -> None:
        regions = list(self._regions)
        transition.add_phase(
            [self._surface.collapse(region) for region in regions],
            then=partial(self._reset_regions, regions),
        )

    def _plan_show(self, transition: Transition, messages: list[str], force_replacement: bool) -> None:
        surface = self._surface
        shape = RegionShape.for_messages(messages)
        current = self.current_region

        replace = force_replacement or len(self._regions) > 1 or surface.shape_of(current) is not shape
        if not replace and surface.render_text(shape, messages) != surface.rendered_text(current):
            replace = True

        superseded: list[QWidget] = []
        region = current
        if replace:
            superseded = list(self._regions)
            region = surface.create(shape)
            surface.insert_after(superseded[-1], region)
            self._regions = [region]
            logger.debug(f"Replacing error region with a new {shape.value} region")

        surface.populate(region, messages)
        surface.set_marked(region, True)

        marked = [old for old in superseded if surface.is_marked(old)]
        for old in superseded:
            if old not in marked:
                self._retire(old)

        if marked:
            transition.add_phase(
                [surface.collapse(old) for old in marked],
                then=partial(self._retire_all, marked),
            )
        transition.add_phase([surface.reveal(region)])

    def _settle_transition(self) -> None:
        if self._transition is not None and self._transition.is_running():
            logger.debug("Cutting short a running error region transition")
            self._transition.fast_forward()
        if self._transition is not None:
            self._transition.deleteLater()
        self._transition = None

    def _reset_regions(self, regions: list[QWidget]) -> None:
        for region in regions:
            self._surface.clear(region)

    def _retire(self, region: QWidget) -> None:
        self._surface.set_marked(region, False)
        self._surface.detach(region)

    def _retire_all(self, regions: list[QWidget]) -> None:
        for region in regions:
            self._retire(region)
