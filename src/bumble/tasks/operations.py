# src/bumble/tasks/operations.py

from __future__ import annotations

import concurrent.futures
from typing import Any

from ..core.ports import AsyncOperation
from .task_models import OperationState

_UNSET = object()


class PendingOperation:
    """
    Manually settled asynchronous operation.

    Mirrors the future observation surface (done/result/exception/cancelled)
    so the scheduler treats it exactly like a concurrent.futures.Future.
    Settles at most once.
    """

    __slots__ = ("_state", "_value", "_error", "_callbacks")

    def __init__(self) -> None:
        self._state = OperationState.PENDING
        self._value: Any = None
        self._error: BaseException | None = None
        self._callbacks: list = []

    def __repr__(self) -> str:
        return f"<PendingOperation {self._state.value}>"

    @property
    def state(self) -> OperationState:
        return self._state

    def resolve(self, value: Any = None) -> None:
        self._settle(OperationState.RESOLVED, value=value)

    def reject(self, error: BaseException) -> None:
        if not isinstance(error, BaseException):
            raise TypeError(f"reject() expects an exception, got {type(error).__name__}")
        self._settle(OperationState.REJECTED, error=error)

    def _settle(self, state: OperationState, *, value: Any = None, error: BaseException | None = None) -> None:
        if self._state is not OperationState.PENDING:
            raise RuntimeError(f"operation already {self._state.value}")
        self._state = state
        self._value = value
        self._error = error
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn(self)

    def add_done_callback(self, fn) -> None:
        if self._state is OperationState.PENDING:
            self._callbacks.append(fn)
        else:
            fn(self)

    # ---- future observation surface ----

    def done(self) -> bool:
        return self._state is not OperationState.PENDING

    def cancelled(self) -> bool:
        return False

    def result(self) -> Any:
        if self._state is OperationState.PENDING:
            raise concurrent.futures.InvalidStateError("operation is still pending")
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self) -> BaseException | None:
        if self._state is OperationState.PENDING:
            raise concurrent.futures.InvalidStateError("operation is still pending")
        return self._error


def resolved(value: Any = None) -> PendingOperation:
    op = PendingOperation()
    op.resolve(value)
    return op


def rejected(error: BaseException) -> PendingOperation:
    op = PendingOperation()
    op.reject(error)
    return op


def poll_operation(op: AsyncOperation) -> tuple[OperationState, Any]:
    """
    Observe an operation without blocking.

    Returns (PENDING, None), (RESOLVED, value) or (REJECTED, error).
    A cancelled future counts as rejected with a CancelledError.
    """
    if not op.done():
        return OperationState.PENDING, None

    cancelled = getattr(op, "cancelled", None)
    if callable(cancelled) and cancelled():
        return OperationState.REJECTED, concurrent.futures.CancelledError()

    error = op.exception()
    if error is not None:
        return OperationState.REJECTED, error
    return OperationState.RESOLVED, op.result()
