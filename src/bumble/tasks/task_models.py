# src/bumble/tasks/task_models.py

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

TaskBody = Generator[Any, Any, Any] | Callable[[], Generator[Any, Any, Any]]


class TaskState(StrEnum):
    """
    Task lifecycle state.

    A task is in exactly one state at a time. DONE and FAILED are terminal;
    the scheduler drops the task on the drive that observes them.
    """

    READY = "ready"
    AWAITING_SINGLE = "awaiting_single"
    AWAITING_ALL = "awaiting_all"
    AWAITING_CHILD = "awaiting_child"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (TaskState.DONE, TaskState.FAILED)


class OperationState(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


# ---- Awaitables: the four shapes a task body may yield ----


@dataclass(slots=True, frozen=True)
class Immediate:
    """A plain value. Fed back to the body on the next step."""

    value: Any = None


@dataclass(slots=True, frozen=True)
class Single:
    """One asynchronous operation."""

    operation: Any


@dataclass(slots=True, frozen=True)
class All:
    """
    Join over several operations.

    Entries that are not asynchronous operations are skipped: they do not
    block the join and never show up in the results.
    """

    operations: tuple[Any, ...]

    @classmethod
    def of(cls, *operations: Any) -> All:
        return cls(tuple(operations))


@dataclass(slots=True, frozen=True)
class Call:
    """A nested task body, stepped by its parent until it finishes."""

    body: TaskBody


Awaitable = Immediate | Single | All | Call


def is_operation(value: Any) -> bool:
    """Anything exposing the future observation surface counts as an operation."""
    return (
        not isinstance(value, type)
        and callable(getattr(value, "done", None))
        and callable(getattr(value, "result", None))
        and callable(getattr(value, "exception", None))
    )


def is_task_body(value: Any) -> bool:
    return inspect.isgenerator(value) or inspect.isgeneratorfunction(value)


def as_awaitable(value: Any) -> Awaitable:
    """
    Classify a raw yielded value into one of the four awaitable variants.

    Explicit variants pass through untouched. Otherwise:
    generator / generator function -> Call, operation -> Single,
    list -> All, anything else (tuples included) -> Immediate.
    """
    if isinstance(value, (Immediate, Single, All, Call)):
        return value
    if is_task_body(value):
        return Call(value)
    if is_operation(value):
        return Single(value)
    if isinstance(value, list):
        return All(tuple(value))
    return Immediate(value)
