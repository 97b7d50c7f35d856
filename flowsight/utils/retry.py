"""Bounded exponential-backoff retries for workflow activities."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

from flowsight.exceptions import FATAL_SETUP_ERRORS, ChangeSetAlreadyAnalyzedError, DiffComputationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one class of activity calls."""

    initial_interval: float = 1.0
    backoff_coefficient: float = 2.0
    maximum_interval: float = 60.0
    maximum_attempts: int = 3
    non_retryable_errors: Tuple[Type[BaseException], ...] = ()

    def __post_init__(self):
        if self.maximum_attempts < 1:
            raise ValueError("maximum_attempts must be at least 1")
        if self.backoff_coefficient < 1:
            raise ValueError("backoff_coefficient must be at least 1")

    def delay_for_attempt(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        delay = self.initial_interval * (self.backoff_coefficient ** (attempt - 1))
        return min(delay, self.maximum_interval)


BOOTSTRAP_RETRY_POLICY = RetryPolicy(
    initial_interval=1.0,
    backoff_coefficient=2.0,
    maximum_interval=60.0,
    maximum_attempts=3,
    non_retryable_errors=FATAL_SETUP_ERRORS,
)

ANALYSIS_RETRY_POLICY = RetryPolicy(
    initial_interval=0.5,
    backoff_coefficient=2.0,
    maximum_interval=10.0,
    maximum_attempts=5,
    non_retryable_errors=FATAL_SETUP_ERRORS + (DiffComputationError, ChangeSetAlreadyAnalyzedError),
)


def execute_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call func until it succeeds or the policy's attempts are exhausted.

    Args:
        func: Zero-argument callable performing the activity
        policy: Retry budget to apply
        description: Activity name used in log messages
        sleep: Sleep function, replaceable in tests

    Returns:
        Whatever func returns on its first successful attempt

    Raises:
        The last exception raised by func, or the first non-retryable one
    """
    for attempt in range(1, policy.maximum_attempts + 1):
        try:
            return func()
        except policy.non_retryable_errors:
            raise
        except Exception as e:
            if attempt >= policy.maximum_attempts:
                logger.error(f"{description} failed after {attempt} attempts: {e}")
                raise
            delay = policy.delay_for_attempt(attempt)
            logger.warning(f"{description} failed (attempt {attempt}/{policy.maximum_attempts}): {e}; retrying in {delay:.1f}s")
            sleep(delay)
    raise RuntimeError("unreachable")
