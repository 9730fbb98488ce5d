# src/bumble/tasks/task_scheduler.py

from __future__ import annotations

"""
Cooperative task scheduler.

A tick-driven loop over generator-based tasks:
- the host calls drive() once per tick,
- every live task advances by one logical step,
- a task suspends by yielding an awaitable (value, operation, list of
  operations, nested body) and is re-examined by polling on later ticks,
- finished tasks (done or failed) are dropped at the end of the drive.

Nothing here performs I/O. Operations are owned by whoever started them;
the scheduler only observes their terminal state.
"""

import inspect
import logging
from typing import Any

from ..errors import BumbleError, OperationRejected, TaskFault
from .operations import poll_operation
from .task_models import (
    All,
    Awaitable,
    Call,
    Immediate,
    OperationState,
    Single,
    TaskBody,
    TaskState,
    as_awaitable,
    is_operation,
)

logger = logging.getLogger(__name__)


def _start(body: TaskBody):
    if inspect.isgenerator(body):
        return body
    if callable(body):
        gen = body()
        if inspect.isgenerator(gen):
            return gen
        raise TypeError(f"task body {body!r} did not return a generator")
    raise TypeError(f"task body must be a generator or generator function, got {type(body).__name__}")


def _body_name(body: Any) -> str:
    return getattr(body, "__qualname__", None) or getattr(body, "__name__", None) or "task"


def _observe(op: Any) -> tuple[OperationState, Any]:
    # A broken operation counts as a rejection of that operation.
    try:
        return poll_operation(op)
    except Exception as exc:
        return OperationState.REJECTED, exc


def _watch_settle(op: Any, arrivals: list[int], index: int) -> None:
    """
    Record the member's index in `arrivals` when it settles.

    Only bookkeeping: the task still resumes by polling. Members without
    add_done_callback are picked up by the input-order sweep in _poll_all.
    """
    add_done_callback = getattr(op, "add_done_callback", None)
    if not callable(add_done_callback):
        return
    try:
        add_done_callback(lambda _op: arrivals.append(index))
    except RuntimeError:
        # asyncio future bound to a closed loop
        logger.debug("cannot watch join member %r; falling back to polling", op, exc_info=True)


class Task:
    """
    Handle for one scheduled task.

    Only the scheduler (or a parent task, for nested bodies) steps it.
    Callers read state/result/error.
    """

    __slots__ = (
        "name",
        "state",
        "result",
        "error",
        "steps",
        "_gen",
        "_send",
        "_throw",
        "_operation",
        "_members",
        "_waiting",
        "_arrivals",
        "_results",
        "_child",
    )

    def __init__(self, body: TaskBody, *, name: str | None = None) -> None:
        self._gen = _start(body)
        self.name = name or _body_name(body)
        self.state = TaskState.READY
        self.result: Any = None
        self.error: BaseException | None = None
        self.steps = 0

        # resumption input for the next resume (value or exception)
        self._send: Any = None
        self._throw: BaseException | None = None

        self._operation: Any = None
        # join: members, indices still unsettled, indices in settle order
        self._members: list[Any] = []
        self._waiting: set[int] = set()
        self._arrivals: list[int] = []
        self._results: list[Any] = []
        self._child: Task | None = None

    def __repr__(self) -> str:
        return f"<Task {self.name!r} {self.state.value}>"

    @property
    def finished(self) -> bool:
        return self.state.terminal

    def step(self) -> TaskState:
        """Advance by one logical step. Resumes the body at most once."""
        if self.state.terminal:
            return self.state
        self.steps += 1

        if self.state is TaskState.AWAITING_SINGLE:
            if not self._poll_single():
                return self.state
        elif self.state is TaskState.AWAITING_ALL:
            if not self._poll_all():
                return self.state
        elif self.state is TaskState.AWAITING_CHILD:
            if not self._step_child():
                return self.state

        self._resume()
        return self.state

    # ---- waiting states ----

    def _poll_single(self) -> bool:
        status, value = _observe(self._operation)
        if status is OperationState.PENDING:
            return False
        if status is OperationState.RESOLVED:
            self._send = value
        else:
            self._throw = OperationRejected(value, self._operation)
        self._operation = None
        return True

    def _poll_all(self) -> bool:
        # Settled members first, in the order they settled; then any member
        # that settled without a callback, in input order.
        order = list(dict.fromkeys(self._arrivals[:]))
        recorded = set(order)
        order += [i for i in range(len(self._members)) if i not in recorded]

        for index in order:
            if index not in self._waiting:
                continue
            op = self._members[index]
            status, value = _observe(op)
            if status is OperationState.PENDING:
                continue
            self._waiting.discard(index)
            if status is OperationState.RESOLVED:
                self._results.append(value)
            else:
                # fail fast: remaining members are abandoned
                self._throw = OperationRejected(value, op)
                self._reset_join()
                return True

        if self._waiting:
            return False

        self._send = self._results
        self._reset_join()
        return True

    def _reset_join(self) -> None:
        # Late callbacks keep appending to the old arrivals list, not this one.
        self._members = []
        self._waiting = set()
        self._arrivals = []
        self._results = []

    def _step_child(self) -> bool:
        child = self._child
        if child is None:
            raise RuntimeError(f"task {self.name!r} is awaiting a child but has none")
        child.step()
        if child.state is TaskState.DONE:
            self._send = child.result
        elif child.state is TaskState.FAILED:
            self._throw = child.error
        else:
            return False
        self._child = None
        return True

    # ---- running the body ----

    def _resume(self) -> None:
        send, throw = self._send, self._throw
        self._send = None
        self._throw = None
        self.state = TaskState.READY

        try:
            if throw is not None:
                yielded = self._gen.throw(throw)
            else:
                yielded = self._gen.send(send)
        except StopIteration as stop:
            self.state = TaskState.DONE
            self.result = stop.value
            return
        except BumbleError as exc:
            self._fail(exc)
            return
        except Exception as exc:
            self._fail_with_fault(exc)
            return

        self._suspend(as_awaitable(yielded))

    def _suspend(self, awaitable: Awaitable) -> None:
        if isinstance(awaitable, Immediate):
            # Costs one extra tick: the value comes back on the next step.
            self._send = awaitable.value
            return

        if isinstance(awaitable, Single):
            if not is_operation(awaitable.operation):
                # raised inside the body at its yield on the next step
                self._throw = TypeError(f"not an asynchronous operation: {awaitable.operation!r}")
                return
            self._operation = awaitable.operation
            self.state = TaskState.AWAITING_SINGLE
            return

        if isinstance(awaitable, All):
            self._reset_join()
            self._members = [op for op in awaitable.operations if is_operation(op)]
            self._waiting = set(range(len(self._members)))
            for index, op in enumerate(self._members):
                _watch_settle(op, self._arrivals, index)
            self.state = TaskState.AWAITING_ALL
            return

        if isinstance(awaitable, Call):
            try:
                self._child = Task(awaitable.body, name=f"{self.name}/{_body_name(awaitable.body)}")
            except TypeError as exc:
                self._throw = exc
                return
            self.state = TaskState.AWAITING_CHILD
            return

        raise TypeError(f"unknown awaitable {awaitable!r}")

    def _fail_with_fault(self, exc: Exception) -> None:
        fault = TaskFault(self.name, f"task {self.name!r} raised {exc!r}")
        fault.__cause__ = exc
        self._fail(fault)

    def _fail(self, error: BaseException) -> None:
        self.state = TaskState.FAILED
        self.error = error
        self._operation = None
        self._reset_join()
        self._child = None


class TaskScheduler:
    """
    Owns the live task list. Explicitly constructed and owned by the host.

    Ordering:
    - tasks are stepped in submission order,
    - a task submitted during drive() is first stepped on the next drive(),
    - clear() drops everything at once, with no further steps.
    """

    def __init__(self, name: str = "scheduler") -> None:
        self.name = name
        self._tasks: list[Task] = []
        self._generation = 0

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def live_count(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def submit(self, body: TaskBody, *, name: str | None = None) -> Task:
        task = Task(body, name=name)
        self._tasks.append(task)
        logger.debug("%s: submitted %s (live=%d)", self.name, task.name, len(self._tasks))
        return task

    def drive(self) -> int:
        """Step every task live at call time once. Returns how many were stepped."""
        if not self._tasks:
            return 0

        generation = self._generation
        stepped = 0
        for task in list(self._tasks):
            if self._generation != generation:
                # cleared from inside a step
                break
            task.step()
            stepped += 1

            if task.state is TaskState.DONE:
                logger.debug("%s: %s done after %d steps", self.name, task.name, task.steps)
            elif task.state is TaskState.FAILED:
                logger.warning(
                    "%s: %s failed after %d steps: %s",
                    self.name,
                    task.name,
                    task.steps,
                    task.error,
                    exc_info=task.error,
                )

        if self._generation == generation:
            self._tasks = [t for t in self._tasks if not t.finished]
        return stepped

    def clear(self) -> None:
        """Drop all live tasks. No steps, no close(), no notifications."""
        if self._tasks:
            logger.debug("%s: clearing %d live tasks", self.name, len(self._tasks))
        self._tasks = []
        self._generation += 1
