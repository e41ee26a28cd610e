from yancpy.tasks.events import WILDCARD, Event, EventBus, SubscriptionToken
from yancpy.tasks.parallel import parallel_fft, parallel_integrate, parallel_monte_carlo
from yancpy.tasks.scheduler import Scheduler
from yancpy.tasks.task import CancellationToken, Task, TaskState

__all__ = [
    "WILDCARD",
    "CancellationToken",
    "Event",
    "EventBus",
    "Scheduler",
    "SubscriptionToken",
    "Task",
    "TaskState",
    "parallel_fft",
    "parallel_integrate",
    "parallel_monte_carlo",
]
