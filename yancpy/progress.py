"""Progress and cancellation hooks shared by every long-running operation.

Operations receive an optional event bus and an optional cancellation token.
These helpers keep the ``None`` checks out of the numerical loops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from yancpy.tasks.events import EventBus
    from yancpy.tasks.task import CancellationToken

CONVERGENCE = "convergence"
PROGRESS = "progress"
WARNING = "warning"
TASK_STATE = "task_state"
HANDLER_ERROR = "handler_error"


def emit(events: EventBus | None, name: str, /, **payload: Any) -> None:
    if events is not None:
        events.emit(name, payload)


def checkpoint(cancel: CancellationToken | None) -> None:
    """Cooperative cancellation point; raises ``TaskCancelledError`` when cancelled."""
    if cancel is not None:
        cancel.raise_if_cancelled()
