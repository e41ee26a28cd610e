"""Publish/subscribe event bus.

An :class:`EventBus` is an explicitly owned registry of ``(name, handler)``
subscriptions; there is no module-level instance. Pass the bus to the
operations whose progress you want to observe.

Delivery is synchronous on the emitting thread, so events emitted by one task
reach each subscriber in emission order. Handlers run outside the registry
lock; a handler may subscribe or unsubscribe from within a callback. A handler
that raises never affects the emitter: the exception is wrapped in a
:class:`~yancpy.errors.HandlerError` and published as a ``handler_error``
event.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from yancpy.errors import HandlerError
from yancpy.progress import HANDLER_ERROR

WILDCARD = "*"


@dataclass(frozen=True)
class Event:
    name: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SubscriptionToken:
    id: str
    name: str


Handler = Callable[[Event], Any]


class EventBus:
    """Process-scoped event registry.

    Subscriptions persist until :meth:`unsubscribe` is called or the bus is
    discarded.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: dict[str, dict[str, Handler]] = {}
        self.log = logging.getLogger(self.__class__.__module__)

    def subscribe(self, name: str, handler: Handler) -> SubscriptionToken:
        """Register ``handler`` for events called ``name`` (``"*"`` for all)."""
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        token = SubscriptionToken(id=uuid.uuid4().hex, name=name)
        with self._lock:
            self._subscriptions.setdefault(name, {})[token.id] = handler
        return token

    def unsubscribe(self, token: SubscriptionToken) -> bool:
        """Remove a subscription; returns ``False`` if it was already gone."""
        with self._lock:
            handlers = self._subscriptions.get(token.name)
            if handlers is None or token.id not in handlers:
                return False
            del handlers[token.id]
            if not handlers:
                del self._subscriptions[token.name]
            return True

    def subscriber_count(self, name: str | None = None) -> int:
        with self._lock:
            if name is None:
                return sum(len(h) for h in self._subscriptions.values())
            return len(self._subscriptions.get(name, {}))

    def _handlers_for(self, name: str) -> list[Handler]:
        with self._lock:
            handlers = list(self._subscriptions.get(name, {}).values())
            if name != WILDCARD:
                handlers.extend(self._subscriptions.get(WILDCARD, {}).values())
        return handlers

    def emit(self, name: str, payload: Mapping[str, Any] | None = None) -> Event:
        """Deliver an event to every current subscriber and return it."""
        event = Event(name=name, payload=MappingProxyType(dict(payload or {})))
        for handler in self._handlers_for(name):
            try:
                handler(event)
            except Exception as exc:
                self._report_handler_error(event, handler, exc)
        return event

    def _report_handler_error(self, event: Event, handler: Handler, exc: Exception) -> None:
        error = HandlerError(event.name, exc)
        self.log.warning("%s", error)
        if event.name == HANDLER_ERROR:
            # A failing handler_error subscriber is only logged.
            return
        self.emit(
            HANDLER_ERROR,
            {"event": event.name, "handler": repr(handler), "error": error},
        )
