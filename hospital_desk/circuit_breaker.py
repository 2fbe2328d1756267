"""Circuit breaker around the hosted completion API.

When the model endpoint keeps failing, agents stop calling it for a while
and answer with their canned apology instead of waiting on timeouts.

States:
- CLOSED: calls pass through
- OPEN: calls fail immediately until ``reset_timeout`` has elapsed
- HALF_OPEN: one trial call; success closes, failure re-opens
"""
import time
from enum import Enum
from typing import Any, Callable, Optional

from hospital_desk.logging_config import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised instead of calling a service whose circuit is open."""

    def __init__(self, name: str, retry_after: float):
        super().__init__(f"Circuit '{name}' is open. Retry after {retry_after:.1f}s")
        self.name = name
        self.retry_after = retry_after


class CircuitBreaker:
    """Counts consecutive failures of one external dependency."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Dependency name used in logs
            failure_threshold: Consecutive failures before opening
            reset_timeout: Seconds to stay open before a trial call
            clock: Time source (injectable for tests)
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._state = CircuitState.CLOSED

    @property
    def state(self) -> str:
        return self._state.value

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Run ``func`` unless the circuit is open.

        Raises:
            CircuitBreakerOpen: If the circuit is open
            Exception: Whatever ``func`` raises (and the failure is counted)
        """
        if self._state == CircuitState.OPEN:
            remaining = self._seconds_until_trial()
            if remaining > 0:
                raise CircuitBreakerOpen(self.name, remaining)
            self._state = CircuitState.HALF_OPEN
            logger.info("circuit_half_open", circuit=self.name)

        try:
            result = func(*args, **kwargs)
        except Exception:
            self._record_failure()
            raise

        self._record_success()
        return result

    def reset(self) -> None:
        self.failure_count = 0
        self.opened_at = None
        self._state = CircuitState.CLOSED

    def _seconds_until_trial(self) -> float:
        if self.opened_at is None:
            return 0
        return max(0.0, self.reset_timeout - (self._clock() - self.opened_at))

    def _record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            logger.info("circuit_closed", circuit=self.name)
        self.reset()

    def _record_failure(self) -> None:
        self.failure_count += 1

        if self._state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self.opened_at = self._clock()
            logger.warning(
                "circuit_opened",
                circuit=self.name,
                failures=self.failure_count,
                reset_timeout=self.reset_timeout,
            )
