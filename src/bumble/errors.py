# src/bumble/errors.py

from __future__ import annotations

"""
Exception hierarchy.

Task faults never travel to other tasks or to the host: the scheduler stores
them on the failed task handle and logs them.
"""

from typing import Any


class BumbleError(Exception):
    """Base class for all bumble errors."""


class TaskFault(BumbleError):
    """An exception escaped a task body. The original is chained as __cause__."""

    def __init__(self, task_name: str, message: str = "") -> None:
        self.task_name = task_name
        super().__init__(message or f"task {task_name!r} raised")


class OperationRejected(BumbleError):
    """
    An awaited asynchronous operation failed.

    Thrown into the suspended task body at its yield point, so the body can
    catch it like any other exception.
    """

    def __init__(self, error: BaseException | None, operation: Any = None) -> None:
        self.error = error
        self.operation = operation
        super().__init__(f"operation rejected: {error!r}")
        self.__cause__ = error
