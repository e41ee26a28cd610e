"""Task handles and cooperative cancellation.

A :class:`Task` moves through ``PENDING -> RUNNING -> {COMPLETED | FAILED |
CANCELLED}``; a pending task may also go straight to ``CANCELLED``. Terminal
states are final. Waiting on a task blocks on a
:class:`concurrent.futures.Future` (no polling), and a task can be awaited from
``asyncio`` code.

Cancellation is cooperative: :meth:`Task.cancel` sets the shared
:class:`CancellationToken`; the running operation notices it at its next
checkpoint and raises :class:`~yancpy.errors.TaskCancelledError`. A task whose
flag is set by the time it finishes is ``CANCELLED`` and its result is
discarded.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import Future
from enum import Enum
from typing import Any

from yancpy.errors import TaskCancelledError


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({TaskState.COMPLETED, TaskState.CANCELLED, TaskState.FAILED})

_TRANSITIONS = {
    TaskState.PENDING: frozenset({TaskState.RUNNING, TaskState.CANCELLED}),
    TaskState.RUNNING: _TERMINAL,
}


class CancellationToken:
    """Shared cancellation flag.

    :meth:`cancel` is idempotent; callbacks registered with
    :meth:`add_callback` run exactly once, on the thread that first cancels.
    """

    def __init__(self):
        self._flag = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def cancelled(self) -> bool:
        return self._flag.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._flag.is_set():
                return
            self._flag.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            if not self._flag.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        if self._flag.is_set():
            raise TaskCancelledError("operation was cancelled")


class Task:
    """Handle to a unit of work owned by a :class:`~yancpy.tasks.scheduler.Scheduler`.

    Attributes
    ----------
    id:
        Unique token.
    name:
        Label used in logs and events.
    cancellation:
        The shared :class:`CancellationToken`.
    error:
        The exception of a failed task, else ``None``.
    """

    def __init__(self, name: str = "task", cancellation: CancellationToken | None = None):
        self.id = uuid.uuid4().hex
        self.name = name
        self.cancellation = cancellation or CancellationToken()
        self.error: BaseException | None = None

        self._state = TaskState.PENDING
        self._result: Any = None
        self._lock = threading.Lock()
        self._future: Future = Future()
        self._listeners: list[Callable[[Task, TaskState], Any]] = []
        self._release_hook: Callable[[Task], Any] | None = None

        self.log = logging.getLogger(self.__class__.__module__)

    @property
    def state(self) -> TaskState:
        return self._state

    def done(self) -> bool:
        return self._state.is_terminal

    def _transition(self, new_state: TaskState, *, result: Any = None, error: BaseException | None = None) -> bool:
        with self._lock:
            if new_state not in _TRANSITIONS.get(self._state, frozenset()):
                return False
            self._state = new_state
            if new_state is TaskState.COMPLETED:
                self._result = result
            elif new_state is TaskState.FAILED:
                self.error = error
            listeners = list(self._listeners)

        for listener in listeners:
            listener(self, new_state)

        if new_state is TaskState.COMPLETED:
            self._future.set_result(result)
        elif new_state is TaskState.FAILED:
            self._future.set_exception(error)
        elif new_state is TaskState.CANCELLED:
            self._future.set_exception(
                TaskCancelledError(f"task {self.name!r} ({self.id}) was cancelled")
            )
        return True

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        """Execute ``fn`` synchronously on the calling worker thread."""
        if not self._transition(TaskState.RUNNING):
            return
        try:
            self.cancellation.raise_if_cancelled()
            value = fn(*args, **kwargs)
        except TaskCancelledError:
            self._transition(TaskState.CANCELLED)
            return
        except Exception as exc:
            if self.cancellation.cancelled:
                self._transition(TaskState.CANCELLED)
            else:
                self.log.debug("task %s (%s) failed: %r", self.name, self.id, exc)
                self._transition(TaskState.FAILED, error=exc)
            return

        if self.cancellation.cancelled:
            self._transition(TaskState.CANCELLED)
        else:
            self._transition(TaskState.COMPLETED, result=value)

    def cancel(self) -> bool:
        """Request cancellation.

        Idempotent. Returns ``False`` if the task had already completed or
        failed, in which case the request is ignored.
        """
        if self._state in (TaskState.COMPLETED, TaskState.FAILED):
            return False
        self.cancellation.cancel()
        self._transition(TaskState.CANCELLED)
        if self._release_hook is not None:
            self._release_hook(self)
        return True

    def result(self, timeout: float | None = None) -> Any:
        """Wait for the task and return its result.

        Raises
        ------
        TaskCancelledError
            If the task was cancelled.
        Exception
            The task's own error if it failed.
        TimeoutError
            If ``timeout`` elapses first.
        """
        try:
            return self._future.result(timeout)
        finally:
            if self._future.done() and self._release_hook is not None:
                self._release_hook(self)

    def exception(self, timeout: float | None = None) -> BaseException | None:
        return self._future.exception(timeout)

    def add_done_callback(self, callback: Callable[[Task], Any]) -> None:
        """Call ``callback(task)`` once the task reaches a terminal state."""
        self._future.add_done_callback(lambda _future: callback(self))

    def _add_listener(self, listener: Callable[[Task, TaskState], Any]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def __await__(self):
        return asyncio.wrap_future(self._future).__await__()

    def __repr__(self):
        return f"Task(name={self.name!r}, id={self.id}, state={self._state.value})"
