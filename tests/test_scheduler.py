import asyncio
import threading
import time

import pytest

from yancpy.errors import TaskCancelledError
from yancpy.tasks import CancellationToken, EventBus, Scheduler, TaskState


def add(a, b, cancel=None):
    return a + b


def fail(cancel=None):
    raise ValueError("partition exploded")


def wait_for(gate: threading.Event, cancel: CancellationToken):
    while not gate.wait(0.01):
        cancel.raise_if_cancelled()
    cancel.raise_if_cancelled()
    return "released"


def test_submit_returns_result():
    with Scheduler(workers=2) as scheduler:
        task = scheduler.submit(add, 2, 3)
        assert task.result(timeout=5) == 5
        assert task.state is TaskState.COMPLETED


def test_failure_is_stored_and_reraised():
    with Scheduler(workers=1) as scheduler:
        task = scheduler.submit(fail)
        with pytest.raises(ValueError, match="exploded"):
            task.result(timeout=5)
        assert task.state is TaskState.FAILED
        assert isinstance(task.error, ValueError)


def test_cancel_running_task():
    gate = threading.Event()
    with Scheduler(workers=1) as scheduler:
        task = scheduler.submit(wait_for, gate)
        assert task.cancel() is True
        assert task.cancel() is True
        assert task.state is TaskState.CANCELLED
        with pytest.raises(TaskCancelledError):
            task.result(timeout=5)
        gate.set()


def test_cancel_pending_task_never_runs():
    gate = threading.Event()
    ran = []
    with Scheduler(workers=1) as scheduler:
        blocker = scheduler.submit(wait_for, gate)
        queued = scheduler.submit(lambda cancel=None: ran.append(True))
        assert scheduler.cancel(queued.id) is True
        gate.set()
        assert blocker.result(timeout=5) == "released"
    assert queued.state is TaskState.CANCELLED
    assert ran == []


def test_completed_task_ignores_cancel():
    with Scheduler(workers=1) as scheduler:
        task = scheduler.submit(add, 1, 1)
        task.result(timeout=5)
        assert task.cancel() is False
        assert task.state is TaskState.COMPLETED


def test_task_state_events():
    bus = EventBus()
    states = []
    bus.subscribe("task_state", lambda e: states.append(e.payload["state"]))
    with Scheduler(workers=1, events=bus) as scheduler:
        scheduler.submit(add, 1, 2).result(timeout=5)
    assert states == ["running", "completed"]


def test_gather_reduces_in_submission_order():
    def slow_value(value, delay, cancel=None):
        time.sleep(delay)
        return value

    with Scheduler(workers=4) as scheduler:
        children = [scheduler.submit(slow_value, i, 0.05 * (4 - i)) for i in range(4)]
        composite = scheduler.gather(children)
        assert composite.result(timeout=5) == [0, 1, 2, 3]


def test_gather_first_failure_cancels_siblings():
    gate = threading.Event()
    with Scheduler(workers=2) as scheduler:
        slow = scheduler.submit(wait_for, gate)
        broken = scheduler.submit(fail)
        composite = scheduler.gather([slow, broken], sum)
        with pytest.raises(ValueError, match="exploded"):
            composite.result(timeout=5)
        assert composite.state is TaskState.FAILED
        assert slow.state is TaskState.CANCELLED
        gate.set()


def test_cancelling_gather_cancels_children():
    gate = threading.Event()
    with Scheduler(workers=2) as scheduler:
        children = [scheduler.submit(wait_for, gate) for _ in range(3)]
        composite = scheduler.gather(children)
        composite.cancel()
        assert composite.state is TaskState.CANCELLED
        assert all(child.state is TaskState.CANCELLED for child in children)
        with pytest.raises(TaskCancelledError):
            composite.result(timeout=5)
        gate.set()


def test_gather_of_nothing():
    with Scheduler(workers=1) as scheduler:
        assert scheduler.gather([], sum).result(timeout=5) == 0


def test_map_keeps_item_order():
    with Scheduler(workers=3) as scheduler:
        task = scheduler.map(add, [1, 2, 3], b=10)
        assert task.result(timeout=5) == [11, 12, 13]


def test_tasks_are_awaitable():
    async def main(scheduler):
        return await scheduler.submit(add, 20, 22)

    with Scheduler(workers=1) as scheduler:
        assert asyncio.run(main(scheduler)) == 42


def test_result_releases_finished_task():
    with Scheduler(workers=1) as scheduler:
        task = scheduler.submit(add, 1, 1)
        task.result(timeout=5)
        assert scheduler.get(task.id) is None


def test_submit_after_shutdown_fails():
    scheduler = Scheduler(workers=1)
    scheduler.shutdown()
    with pytest.raises(RuntimeError, match="shutdown"):
        scheduler.submit(add, 1, 2)
