"""
Validation results and pending validation requests.

A validator answers asynchronously: it hands back a ValidationRequest right
away and settles it later with either a ValidationResult or a rejection
reason. Requests are plain QObjects so that results can be delivered through
queued signals from worker threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from PySide6.QtCore import QObject, Signal

from .errors import ErrorCode, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validator that managed to check a value."""

    valid: bool
    messages: tuple[str, ...] = ()

    @classmethod
    def coerce(cls, info: Any) -> ValidationResult:
        """
        Build a result from what a validator resolved with.

        Accepts a ValidationResult, a mapping with "valid" and "messages"
        keys, or a (valid, messages) pair. A bare string message counts as a
        single message.

        Raises:
            ValidationError: If the value has none of the accepted shapes
        """
        if isinstance(info, ValidationResult):
            return info

        if isinstance(info, Mapping) and "valid" in info:
            valid, messages = info["valid"], info.get("messages", ())
        elif isinstance(info, tuple) and len(info) == 2:
            valid, messages = info
        else:
            raise ValidationError(
                code=ErrorCode.INVALID_RESULT,
                user_message="The validator returned an unusable result",
                technical_message=f"Cannot interpret validation result {info!r}",
            )

        if messages is None:
            messages = ()
        elif isinstance(messages, str):
            messages = (messages,)
        return cls(valid=bool(valid), messages=tuple(str(m) for m in messages))


class RequestState(Enum):
    """Lifecycle of a ValidationRequest."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    ABORTED = "aborted"


class ValidationRequest(QObject):
    """
    Pending answer of a validator.

    A request settles exactly once. Continuations registered with then()
    after the request settled run immediately.

    Signals:
        resolved(object): The validator produced a ValidationResult
        rejected(object): The validator failed; carries the reason
        settled(): Emitted after either of the above
    """

    resolved = Signal(object)
    rejected = Signal(object)
    settled = Signal()

    def __init__(self, value: str = "", parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.value = value
        self._state = RequestState.PENDING
        self._result: ValidationResult | None = None
        self._reason: Any = None

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def result(self) -> ValidationResult | None:
        """The result once resolved, otherwise None."""
        return self._result

    @property
    def reason(self) -> Any:
        """The rejection reason once rejected, otherwise None."""
        return self._reason

    def is_pending(self) -> bool:
        return self._state is RequestState.PENDING

    def resolve(self, info: Any) -> None:
        """
        Settle the request with a validator answer.

        An answer that cannot be interpreted rejects the request instead.
        """
        if not self.is_pending():
            logger.debug(f"Ignoring resolution of settled request for {self.value!r}")
            return

        try:
            result = ValidationResult.coerce(info)
        except ValidationError as e:
            self.reject(e)
            return

        self._state = RequestState.RESOLVED
        self._result = result
        self.resolved.emit(result)
        self.settled.emit()

    def reject(self, reason: Any = None) -> None:
        """Settle the request as failed."""
        if not self.is_pending():
            logger.debug(f"Ignoring rejection of settled request for {self.value!r}")
            return

        self._state = RequestState.REJECTED
        self._reason = reason
        self.rejected.emit(reason)
        self.settled.emit()

    def then(
        self,
        on_resolved: Callable[[ValidationResult], None] | None = None,
        on_rejected: Callable[[Any], None] | None = None,
    ) -> ValidationRequest:
        """
        Register continuations for the outcome of the request.

        Returns:
            The request itself, for chaining
        """
        if self._state is RequestState.RESOLVED:
            if on_resolved:
                on_resolved(self._result)  # type: ignore[arg-type]
        elif self._state is RequestState.REJECTED:
            if on_rejected:
                on_rejected(self._reason)
        elif self._state is RequestState.PENDING:
            if on_resolved:
                self.resolved.connect(on_resolved)
            if on_rejected:
                self.rejected.connect(on_rejected)
        return self


# What a validator may hand back: a pending request or an immediate answer
ValidatorReturn = Union[ValidationRequest, ValidationResult, Mapping[str, Any], tuple]
Validator = Callable[[str], ValidatorReturn]


def as_request(value: str, answer: ValidatorReturn) -> ValidationRequest:
    """
    Wrap an immediate validator answer into an already settled request.

    Requests are passed through untouched.
    """
    if isinstance(answer, ValidationRequest):
        return answer

    request = ValidationRequest(value)
    request.resolve(answer)
    return request


def resolved_request(value: str, info: Any) -> ValidationRequest:
    """Create a request that already resolved with ``info``."""
    request = ValidationRequest(value)
    request.resolve(info)
    return request


def rejected_request(value: str, reason: Any = None) -> ValidationRequest:
    """Create a request that already failed with ``reason``."""
    request = ValidationRequest(value)
    request.reject(reason)
    return request
