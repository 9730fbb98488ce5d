# tests/test_operations.py

from __future__ import annotations

import asyncio
import concurrent.futures

import pytest

from bumble.tasks.operations import PendingOperation, poll_operation, rejected, resolved
from bumble.tasks.task_models import OperationState


def test_pending_operation_settles_once() -> None:
    op = PendingOperation()
    assert op.state is OperationState.PENDING
    assert not op.done()

    op.resolve(7)
    assert op.done()
    assert op.result() == 7
    assert op.exception() is None

    with pytest.raises(RuntimeError):
        op.resolve(8)
    with pytest.raises(RuntimeError):
        op.reject(ValueError("late"))
    assert op.result() == 7


def test_pending_operation_result_before_settle_raises() -> None:
    op = PendingOperation()
    with pytest.raises(concurrent.futures.InvalidStateError):
        op.result()
    with pytest.raises(concurrent.futures.InvalidStateError):
        op.exception()


def test_rejected_operation_reraises_on_result() -> None:
    err = ValueError("x")
    op = rejected(err)
    assert op.state is OperationState.REJECTED
    assert op.exception() is err
    with pytest.raises(ValueError):
        op.result()


def test_reject_requires_exception() -> None:
    with pytest.raises(TypeError):
        PendingOperation().reject("not an exception")  # type: ignore[arg-type]


def test_done_callbacks_fire_on_settle_and_after() -> None:
    calls = []
    op = PendingOperation()
    op.add_done_callback(lambda o: calls.append(("early", o.result())))
    op.resolve("v")
    op.add_done_callback(lambda o: calls.append(("late", o.result())))
    assert calls == [("early", "v"), ("late", "v")]


def test_poll_pending_operation_operations() -> None:
    assert poll_operation(PendingOperation()) == (OperationState.PENDING, None)
    assert poll_operation(resolved("ok")) == (OperationState.RESOLVED, "ok")

    err = OSError("gone")
    assert poll_operation(rejected(err)) == (OperationState.REJECTED, err)


def test_poll_concurrent_futures() -> None:
    fut: concurrent.futures.Future = concurrent.futures.Future()
    assert poll_operation(fut) == (OperationState.PENDING, None)
    fut.set_result(3)
    assert poll_operation(fut) == (OperationState.RESOLVED, 3)

    failed: concurrent.futures.Future = concurrent.futures.Future()
    err = RuntimeError("r")
    failed.set_exception(err)
    assert poll_operation(failed) == (OperationState.REJECTED, err)

    cancelled: concurrent.futures.Future = concurrent.futures.Future()
    cancelled.cancel()
    status, error = poll_operation(cancelled)
    assert status is OperationState.REJECTED
    assert isinstance(error, concurrent.futures.CancelledError)


def test_poll_asyncio_future() -> None:
    loop = asyncio.new_event_loop()
    try:
        fut = loop.create_future()
        assert poll_operation(fut) == (OperationState.PENDING, None)
        fut.set_result("async")
        assert poll_operation(fut) == (OperationState.RESOLVED, "async")
    finally:
        loop.close()
