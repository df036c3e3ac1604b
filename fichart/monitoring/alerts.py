"""Alert fan-out: deliver alerts to registered notifiers and publish an event."""
from __future__ import annotations

import threading

from fichart.monitoring.events import (
    Alert,
    EventType,
    Notifier,
    Publisher,
    new_monitoring_event,
)


class SimpleNotifier:
    """Forwards each alert to every registered handler, then publishes it."""

    def __init__(self, publisher: Publisher) -> None:
        self._publisher = publisher
        self._handlers: list[Notifier] = []
        self._lock = threading.Lock()

    def add_handler(self, handler: Notifier) -> None:
        """Register a handler that receives every alert."""
        with self._lock:
            self._handlers.append(handler)

    def remove_handler(self, handler: Notifier) -> None:
        """Remove the first registration of the given handler, if any."""
        with self._lock:
            for index, registered in enumerate(self._handlers):
                if registered is handler:
                    del self._handlers[index]
                    break

    def notify(self, alert: Alert) -> None:
        """Deliver the alert to all handlers and publish an alert event.

        A failing handler does not stop delivery to the others; a failure to
        publish the event is raised.
        """
        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler.notify(alert)
            except Exception:  # noqa: BLE001 - one handler must not block the rest
                continue

        self._publisher.publish(new_monitoring_event(EventType.ALERT_TRIGGERED, alert))