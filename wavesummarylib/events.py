from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable

from .errors import ValidationError

# Events emitted by the library, with the keyword data each one carries
EVENT_TYPES: dict[str, tuple[str, ...]] = {
    "generator.init": ("sample_rate", "channels", "samples_per_pixel", "mono"),
    "generator.done": ("points",),
    "buffer.rescale": (
        "input_samples_per_pixel", "output_samples_per_pixel", "points",
    ),
    "file.read": ("path", "format", "version", "points", "channels"),
    "file.write": ("path", "format", "version"),
}

ALL_EVENTS = "*"

Handler = Callable[..., Any]


class EventBus:
    """Diagnostics sink for the generator, rescaler and file formats.

    Components take an optional bus and report what they do as structured
    events (see :data:`EVENT_TYPES`) instead of printing. Handlers for one
    event type are called with the event's keyword data; handlers
    subscribed to :data:`ALL_EVENTS` also receive ``event_type``.

    Handlers run synchronously in the emitting thread, in subscription
    order. The handler table is guarded by a lock, so one bus may be
    shared by pipelines running in several threads.
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    @staticmethod
    def _check_type(event_type: str) -> None:
        if event_type != ALL_EVENTS and event_type not in EVENT_TYPES:
            known = ", ".join(sorted(EVENT_TYPES))
            raise ValidationError(
                f"Unknown event type: {event_type!r} (known: {known})"
            )

    def subscribe(self, event_type: str, handler: Handler) -> Handler:
        """Call *handler* for every *event_type* event. Returns *handler*."""
        self._check_type(event_type)
        with self._lock:
            self._handlers[event_type].append(handler)
        return handler

    def on(self, event_type: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`subscribe`."""
        return lambda handler: self.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def emit(self, event_type: str, **data: Any) -> None:
        self._check_type(event_type)
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))
            catch_all = list(self._handlers.get(ALL_EVENTS, ()))
        for handler in handlers:
            handler(**data)
        for handler in catch_all:
            handler(event_type=event_type, **data)


def emit(event_bus: EventBus | None, event_type: str, **data: Any) -> None:
    """Emit on *event_bus* if one was given."""
    if event_bus is not None:
        event_bus.emit(event_type, **data)
