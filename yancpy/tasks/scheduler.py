"""Fixed-size worker pool scheduling :class:`~yancpy.tasks.task.Task` objects.

Submission is non-blocking and returns a task handle immediately; worker
threads pull queued tasks and run them synchronously until they finish or hit
a cancellation checkpoint. Threads rather than processes are used because the
heavy lifting happens in NumPy and Numba kernels that release the GIL, and
results need no serialization.

The task registry is the scheduler's only mutable shared structure besides the
executor queue; both are mutated under :attr:`Scheduler._lock`.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from yancpy.numerics import Numerics, resolve
from yancpy.progress import PROGRESS, TASK_STATE, emit
from yancpy.tasks.events import EventBus
from yancpy.tasks.task import Task, TaskState


class Scheduler:
    """Bounded worker pool.

    Parameters
    ----------
    workers:
        Pool size; defaults to ``numerics.scheduler.workers``.
    events:
        Optional event bus receiving ``task_state`` and ``progress`` events.
    numerics:
        Configuration supplying the default pool size.

    Examples
    --------
    >>> with Scheduler(workers=4) as scheduler:
    ...     task = scheduler.submit(integrate, f, 0.0, 1.0)
    ...     value = task.result()
    """

    def __init__(
        self,
        workers: int | None = None,
        *,
        events: EventBus | None = None,
        numerics: Numerics | None = None,
    ):
        self.numerics = resolve(numerics)
        self.workers = int(workers) if workers is not None else self.numerics.scheduler.workers
        if self.workers < 1:
            raise ValueError(f"worker count must be at least 1, got {self.workers}")
        self.events = events

        self._executor = ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="yanc-worker"
        )
        self._lock = threading.Lock()
        self._tasks: dict[str, Task] = {}
        self._closed = False

        self.log = logging.getLogger(self.__class__.__module__)
        self.log.debug("scheduler started with %d workers", self.workers)

    def __enter__(self) -> Scheduler:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True, cancel_pending=exc_type is not None)

    def _register(self, task: Task) -> None:
        task._add_listener(self._on_transition)
        task._release_hook = self._release
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot schedule new tasks after shutdown")
            self._tasks[task.id] = task

    def _release(self, task: Task) -> None:
        with self._lock:
            self._tasks.pop(task.id, None)

    def _on_transition(self, task: Task, state: TaskState) -> None:
        self.log.debug("task %s (%s) -> %s", task.name, task.id, state.value)
        emit(self.events, TASK_STATE, task_id=task.id, name=task.name, state=state.value)

    def submit(
        self,
        fn: Callable[..., Any],
        /,
        *args: Any,
        name: str | None = None,
        inject_cancel: bool = True,
        **kwargs: Any,
    ) -> Task:
        """Queue ``fn(*args, **kwargs)`` and return its task handle.

        With ``inject_cancel`` (the default) the task's cancellation token is
        passed as the ``cancel`` keyword, which every YANC operation accepts.
        """
        task = Task(name=name or getattr(fn, "__name__", "task"))
        if inject_cancel:
            kwargs["cancel"] = task.cancellation
        self._register(task)
        with self._lock:
            if self._closed:
                self._tasks.pop(task.id, None)
                raise RuntimeError("cannot schedule new tasks after shutdown")
            self._executor.submit(task._run, fn, args, kwargs)
        return task

    def map(
        self,
        fn: Callable[..., Any],
        items: Iterable[Any],
        *,
        name: str | None = None,
        **kwargs: Any,
    ) -> Task:
        """Submit ``fn(item, **kwargs)`` per item; the composite result is a list in item order."""
        name = name or getattr(fn, "__name__", "map")
        children = [
            self.submit(fn, item, name=f"{name}[{i}]", **kwargs)
            for i, item in enumerate(items)
        ]
        return self.gather(children, name=name)

    def gather(
        self,
        tasks: Sequence[Task],
        reducer: Callable[[list[Any]], Any] = list,
        *,
        name: str = "gather",
    ) -> Task:
        """Combine ``tasks`` into one composite task.

        The composite completes with ``reducer(results)`` where ``results`` is
        ordered like ``tasks``, regardless of completion order. The first
        observed child failure fails the composite with that child's error and
        cancels the remaining children. Cancelling the composite cancels every
        child and leaves the composite ``CANCELLED`` without a result. A
        ``progress`` event ``{task_id, partition, progress_fraction}`` is
        emitted as each child completes.
        """
        tasks = list(tasks)
        composite = Task(name=name)
        self._register(composite)
        composite._transition(TaskState.RUNNING)

        total = len(tasks)
        results: list[Any] = [None] * total
        state_lock = threading.Lock()
        completed = 0
        failed = False

        def cancel_children() -> None:
            for child in tasks:
                child.cancel()

        def finish(new_state: TaskState, **kwargs: Any) -> None:
            if composite._transition(new_state, **kwargs):
                for child in tasks:
                    self._release(child)

        def on_child_done(index: int, child: Task) -> None:
            nonlocal completed, failed
            if composite.done():
                return
            state = child.state
            if state is TaskState.COMPLETED:
                with state_lock:
                    results[index] = child._result
                    completed += 1
                    count = completed
                emit(
                    self.events,
                    PROGRESS,
                    task_id=composite.id,
                    partition=index,
                    progress_fraction=count / total,
                )
                if count == total:
                    try:
                        value = reducer(results)
                    except Exception as exc:
                        finish(TaskState.FAILED, error=exc)
                    else:
                        finish(TaskState.COMPLETED, result=value)
            elif state is TaskState.FAILED:
                with state_lock:
                    if failed:
                        return
                    failed = True
                self.log.info(
                    "%s: partition %d failed (%r); cancelling siblings", name, index, child.error
                )
                # Siblings are cancelled before the composite resolves.
                cancel_children()
                finish(TaskState.FAILED, error=child.error)
            else:
                with state_lock:
                    if failed:
                        return
                composite.cancellation.cancel()
                finish(TaskState.CANCELLED)

        composite.cancellation.add_callback(cancel_children)

        if total == 0:
            finish(TaskState.COMPLETED, result=reducer([]))
            return composite

        for index, child in enumerate(tasks):
            child.add_done_callback(functools.partial(on_child_done, index))
        return composite

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def tasks(self) -> list[Task]:
        """Snapshot of the tasks the scheduler currently owns."""
        with self._lock:
            return list(self._tasks.values())

    def cancel(self, task: Task | str) -> bool:
        """Cancel a task (or task id). Idempotent; finished tasks ignore it."""
        if isinstance(task, str):
            found = self.get(task)
            if found is None:
                return False
            task = found
        return task.cancel()

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        with self._lock:
            self._closed = True
            owned = list(self._tasks.values())
        if cancel_pending:
            for task in owned:
                task.cancel()
        self._executor.shutdown(wait=wait)
        self.log.debug("scheduler shut down")
