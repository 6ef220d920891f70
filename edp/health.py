from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from .events import log_event


class HealthStatus(str, Enum):
    UNKNOWN = "unknown"
    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def parse(cls, raw: str | None) -> "HealthStatus":
        """Map an engine health string onto the known states.

        Empty, missing or unrecognised values are UNKNOWN.
        """
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class PollOutcome(str, Enum):
    HEALTHY = "healthy"
    TIMED_OUT = "timed_out"


class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


@dataclass(frozen=True)
class PollResult:
    outcome: PollOutcome
    attempts: int
    last_status: HealthStatus
    elapsed_s: float


class HealthPoller:
    """Wait for an engine-reported health status of 'healthy'.

    probe() returns the raw status string and raises on inspect failure; the
    error propagates untouched since a failed inspect is not "not yet healthy".
    With max_wait_s == 0 the poller waits forever.
    """

    def __init__(
        self,
        probe: Callable[[], str],
        interval_s: float = 10,
        max_wait_s: float = 0,
        clock: Clock | None = None,
        label: str | None = None,
    ):
        self.probe = probe
        self.interval_s = max(1.0, float(interval_s))
        self.max_wait_s = max(0.0, float(max_wait_s))
        self.clock = clock or SystemClock()
        self.label = label

    def wait(self) -> PollResult:
        started = self.clock.monotonic()
        attempts = 0
        while True:
            status = HealthStatus.parse(self.probe())
            attempts += 1
            elapsed = self.clock.monotonic() - started
            if status is HealthStatus.HEALTHY:
                log_event("INFO", f"Healthy after {attempts} check(s)", container=self.label)
                return PollResult(PollOutcome.HEALTHY, attempts, status, elapsed)
            remaining = self.max_wait_s - elapsed
            if self.max_wait_s and remaining <= 0:
                log_event(
                    "ERROR",
                    f"Still {status.value} after {elapsed:.0f}s, giving up (limit {self.max_wait_s:.0f}s)",
                    container=self.label,
                )
                return PollResult(PollOutcome.TIMED_OUT, attempts, status, elapsed)
            log_event("INFO", f"Waiting for database to start (status: {status.value})...", container=self.label)
            # Last sleep is cut short so one final check lands on the budget boundary.
            self.clock.sleep(min(self.interval_s, remaining) if self.max_wait_s else self.interval_s)
