"""Monitoring events, alerts and the contracts for publishing and notifying."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EventType(str, Enum):
    """Kinds of monitoring events."""

    METRIC_COLLECTED = "metric_collected"
    ALERT_TRIGGERED = "alert_triggered"

    def __str__(self) -> str:
        return self.value


@dataclass
class Event:
    """A monitoring event with an arbitrary payload."""

    type: EventType
    timestamp: datetime
    data: Any


def new_monitoring_event(event_type: EventType, data: Any) -> Event:
    """Create an event stamped with the current time."""
    return Event(type=event_type, timestamp=_now(), data=data)


class Handler(Protocol):
    """Reacts to published events."""

    def handle(self, event: Event) -> None:
        """Handle one event; raise on failure."""


class Publisher(Protocol):
    """Distributes events to subscribed handlers."""

    def publish(self, event: Event) -> None:
        """Publish an event; raise on failure."""

    def subscribe(self, handler: Handler) -> None:
        """Register a handler."""

    def unsubscribe(self, handler: Handler) -> None:
        """Remove a handler."""


class AlertLevel(str, Enum):
    """Severity of an alert."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value


@dataclass
class Alert:
    """An alert raised by the monitoring system."""

    id: str
    level: AlertLevel
    source: str
    message: str
    timestamp: datetime = field(default_factory=_now)
    metadata: dict[str, str] | None = None


def new_alert(
    alert_id: str,
    source: str,
    message: str,
    level: AlertLevel,
    metadata: dict[str, str] | None = None,
) -> Alert:
    """Create an alert stamped with the current time."""
    return Alert(
        id=alert_id,
        level=level,
        source=source,
        message=message,
        timestamp=_now(),
        metadata=metadata,
    )


class Notifier(Protocol):
    """Delivers alerts."""

    def notify(self, alert: Alert) -> None:
        """Deliver one alert; raise on failure."""