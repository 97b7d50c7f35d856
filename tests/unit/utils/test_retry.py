"""Tests for bounded retries."""

from unittest.mock import Mock

import pytest

from flowsight.exceptions import AuthorizationError, DiffComputationError
from flowsight.utils.retry import (
    ANALYSIS_RETRY_POLICY,
    BOOTSTRAP_RETRY_POLICY,
    RetryPolicy,
    execute_with_retry,
)


class TestRetryPolicy:
    def test_backoff_is_capped(self) -> None:
        policy = RetryPolicy(initial_interval=1.0, backoff_coefficient=2.0, maximum_interval=5.0)

        assert [policy.delay_for_attempt(n) for n in range(1, 5)] == [1.0, 2.0, 4.0, 5.0]

    def test_invalid_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(maximum_attempts=0)

    def test_fatal_errors_are_not_retryable(self) -> None:
        assert AuthorizationError in BOOTSTRAP_RETRY_POLICY.non_retryable_errors
        assert DiffComputationError in ANALYSIS_RETRY_POLICY.non_retryable_errors


class TestExecuteWithRetry:
    def test_returns_first_success(self) -> None:
        func = Mock(side_effect=[ConnectionError("reset"), "ok"])
        sleep = Mock()

        result = execute_with_retry(func, RetryPolicy(initial_interval=0.5), "fetch", sleep=sleep)

        assert result == "ok"
        sleep.assert_called_once_with(0.5)

    def test_raises_last_error_when_exhausted(self) -> None:
        func = Mock(side_effect=[ConnectionError("first"), ConnectionError("second"), ConnectionError("third")])
        sleep = Mock()

        with pytest.raises(ConnectionError, match="third"):
            execute_with_retry(func, RetryPolicy(maximum_attempts=3), "fetch", sleep=sleep)

        assert func.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_non_retryable_error_is_raised_immediately(self) -> None:
        func = Mock(side_effect=AuthorizationError("revoked"))
        sleep = Mock()

        with pytest.raises(AuthorizationError):
            execute_with_retry(func, BOOTSTRAP_RETRY_POLICY, "validate", sleep=sleep)

        assert func.call_count == 1
        sleep.assert_not_called()
