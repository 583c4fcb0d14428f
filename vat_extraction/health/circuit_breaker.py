import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from vat_extraction.logging.logger import Log


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerStats:
    name: str
    state: CircuitState
    failure_count: int
    success_count: int
    opened_at: float | None


class CircuitBreaker:
    """Closed -> open after consecutive failures, half-open after a cool-down.

    In half-open state a single failure re-opens the circuit and
    `success_threshold` successes close it.
    """

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 3,
        success_threshold: int = 1,
        reset_timeout_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._failure_threshold = failure_threshold
        self._success_threshold = success_threshold
        self._reset_timeout = reset_timeout_seconds
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at: float | None = None

    @property
    def state(self) -> CircuitState:
        if (
            self._state is CircuitState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self._reset_timeout
        ):
            self._state = CircuitState.HALF_OPEN
            self._successes = 0
            Log.info(f"Circuit breaker for {self._name} moved to half-open")
        return self._state

    def allows_request(self) -> bool:
        return self.state is not CircuitState.OPEN

    def record_success(self) -> None:
        self._failures = 0
        if self.state is CircuitState.HALF_OPEN:
            self._successes += 1
            if self._successes >= self._success_threshold:
                self._state = CircuitState.CLOSED
                self._opened_at = None
                Log.info(f"Circuit breaker for {self._name} closed")

    def record_failure(self) -> None:
        self._failures += 1
        state = self.state
        if state is CircuitState.HALF_OPEN or (
            state is CircuitState.CLOSED and self._failures >= self._failure_threshold
        ):
            self._open()

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at = None

    def stats(self) -> BreakerStats:
        return BreakerStats(
            name=self._name,
            state=self.state,
            failure_count=self._failures,
            success_count=self._successes,
            opened_at=self._opened_at,
        )

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        Log.warning(
            f"Circuit breaker OPEN for {self._name} after {self._failures} failure(s)"
        )
