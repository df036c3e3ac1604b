"""Health checks: individual checks, their results and a periodic checker."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping, Protocol


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Status(str, Enum):
    """Health of a component."""

    UP = "UP"
    DOWN = "DOWN"

    def __str__(self) -> str:
        return self.value


@dataclass
class Result:
    """The outcome of one health check."""

    name: str
    status: Status
    error: str = ""
    timestamp: datetime = field(default_factory=_now)


def new_result(is_healthy: bool, errors: Mapping[str, BaseException] | None = None) -> Result:
    """Summarise a set of check errors into one result named 'health'."""
    status = Status.UP if is_healthy else Status.DOWN
    message = ", ".join(f"{name}: {err}" for name, err in (errors or {}).items())
    return Result(name="health", status=status, error=message, timestamp=_now())


class Results(list):
    """A list of check results."""

    def is_healthy(self) -> bool:
        """Whether every result is UP."""
        return all(result.status == Status.UP for result in self)


class Check(Protocol):
    """A named health check."""

    @property
    def name(self) -> str:
        """The check's name."""

    def check(self) -> Result:
        """Run the check; raise if it cannot be performed."""


class SimpleChecker:
    """A check whose status is set from outside."""

    def __init__(self) -> None:
        self._status = Status.UP
        self._error: BaseException | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "simple"

    def check(self) -> Result:
        """Report the current status and error."""
        with self._lock:
            status, error = self._status, self._error
        return Result(
            name="simple",
            status=status,
            error=str(error) if error is not None else "",
            timestamp=_now(),
        )

    def set_status(self, status: Status, error: BaseException | None = None) -> None:
        """Set the status and the error to report."""
        with self._lock:
            self._status = status
            self._error = error


def _seconds(interval: timedelta | float) -> float:
    seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
    if seconds <= 0:
        raise ValueError("interval must be positive")
    return seconds


class Checker:
    """Holds checks by name and runs them on demand or periodically."""

    def __init__(self, interval: timedelta | float) -> None:
        self.interval = _seconds(interval)
        self._checks: dict[str, Check] = {}
        self._lock = threading.Lock()

    def add_check(self, check: Check) -> None:
        """Add a check, replacing any check of the same name."""
        with self._lock:
            self._checks[check.name] = check

    def remove_check(self, name: str) -> None:
        """Remove the check with the given name, if present."""
        with self._lock:
            self._checks.pop(name, None)

    def check_all(self) -> Results:
        """Run every check; a check that raises is reported as DOWN."""
        with self._lock:
            checks = list(self._checks.values())
        results = Results()
        for check in checks:
            try:
                result = check.check()
            except Exception as exc:  # noqa: BLE001 - a failing check is a DOWN result
                result = Result(name=check.name, status=Status.DOWN, error=str(exc), timestamp=_now())
            results.append(result)
        return results

    def start(self, stop_event: threading.Event) -> None:
        """Run all checks every interval until the event is set."""
        while not stop_event.wait(self.interval):
            self.check_all()


class HealthCheckFailedError(Exception):
    def __init__(self, message: str = "health check failed") -> None:
        super().__init__(message)


class HealthCheckTimeoutError(Exception):
    def __init__(self, message: str = "health check timeout") -> None:
        super().__init__(message)