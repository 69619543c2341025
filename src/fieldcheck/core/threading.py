"""
Threaded validators for blocking validation functions.

This module provides a QThread-based worker system so that validators doing
blocking work (network lookups, database queries) never freeze the UI, with
cooperative cancellation of requests that were superseded.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QObject, Qt, QThread, Signal, Slot

from .errors import from_exception
from .validation import RequestState, ValidationRequest

logger = logging.getLogger(__name__)


class ValidatorWorker(QThread):
    """
    QThread-based worker running one blocking validation call.

    Exactly one terminal signal is emitted per run.

    Signals:
        validationCompleted(object): The function returned; carries its answer
        validationError(object): The function raised; carries a BaseAppError
        validationCanceled(): The request was aborted while the call ran
    """

    # Signals for thread-safe communication with the GUI thread
    validationCompleted = Signal(object)  # raw validator answer
    validationError = Signal(object)  # BaseAppError
    validationCanceled = Signal()  # no args

    def __init__(self, func: Callable[[str], Any], value: str, *, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._func = func
        self.value = value

        # Cancellation state, shared with the GUI thread
        self._cancel_event = threading.Event()

        # Set object name for debugging
        self.setObjectName("ValidatorWorker")

    @Slot()
    def cancel(self) -> None:
        """
        Request cancellation of the validation.

        The running call is not interrupted; its answer is dropped instead.
        """
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self) -> None:
        try:
            answer = self._func(self.value)
        except Exception as e:
            # A cancelled request must not report anything, not even a failure
            if self._cancel_event.is_set():
                self.validationCanceled.emit()
                return
            logger.debug(f"Validator raised {type(e).__name__} for {self.value!r}")
            # Normalize here; the receiving side only deals with BaseAppError
            self.validationError.emit(from_exception(e, {"value": self.value}))
            return

        if self._cancel_event.is_set():
            self.validationCanceled.emit()
        else:
            # Signals across threads are automatically queued by Qt
            self.validationCompleted.emit(answer)


class ThreadedValidationRequest(ValidationRequest):
    """ValidationRequest backed by a ValidatorWorker, supporting abort()."""

    def __init__(self, worker: ValidatorWorker, parent: QObject | None = None) -> None:
        super().__init__(worker.value, parent)
        self._worker = worker

        # Settle on the GUI thread, never on the worker thread
        worker.validationCompleted.connect(self.resolve, Qt.ConnectionType.QueuedConnection)
        worker.validationError.connect(self.reject, Qt.ConnectionType.QueuedConnection)

    def abort(self) -> None:
        """Abandon the request; it will never settle."""
        if not self.is_pending():
            return
        logger.debug(f"Aborting validation of {self.value!r}")
        # ABORTED is not PENDING, so a late resolve() or reject() is ignored
        self._state = RequestState.ABORTED
        self._worker.cancel()


class ThreadedValidator(QObject):
    """
    Validator adapter running a blocking function on worker threads.

    Calling the adapter with a value starts a worker and returns its request.
    Workers are kept alive until their thread finished.
    """

    def __init__(self, func: Callable[[str], Any], parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._func = func

        # Live workers and their requests; Python must keep both alive until the thread ends
        self._workers: dict[ValidatorWorker, ThreadedValidationRequest] = {}

        # Set object name for debugging
        self.setObjectName("ThreadedValidator")

    def __call__(self, value: str) -> ThreadedValidationRequest:
        worker = ValidatorWorker(self._func, value)
        request = ThreadedValidationRequest(worker)

        self._workers[worker] = request
        worker.finished.connect(self._cleanup_worker, Qt.ConnectionType.QueuedConnection)
        worker.start()
        logger.debug(f"Started validation worker for {value!r} ({len(self._workers)} active)")
        return request

    def active_workers(self) -> int:
        return len(self._workers)

    @Slot()
    def _cleanup_worker(self) -> None:
        worker = self.sender()
        # Ignore stray signals and workers that were already cleaned up
        if not isinstance(worker, ValidatorWorker) or worker not in self._workers:
            return

        del self._workers[worker]
        # Schedule for deletion on the GUI thread's event loop
        worker.deleteLater()

    def wait_for_workers(self, timeout_ms: int = 3000) -> bool:
        """
        Abort every pending request and wait for its worker to finish.

        This should generally only be called during application shutdown.

        Returns:
            True if every worker finished within the timeout
        """
        all_finished = True
        for worker, request in list(self._workers.items()):
            # Settled requests keep their state; the worker is cancelled either way
            request.abort()
            worker.cancel()
            if not worker.wait(timeout_ms):
                logger.warning(f"Validation worker for {worker.value!r} did not finish within {timeout_ms}ms")
                all_finished = False
        return all_finished


def threaded_validator(func: Callable[[str], Any], parent: QObject | None = None) -> ThreadedValidator:
    """
    Turn a blocking ``func(value) -> answer`` into an asynchronous validator.

    The answer may be anything ValidationResult.coerce() accepts; raising an
    exception rejects the request.
    """
    return ThreadedValidator(func, parent)
