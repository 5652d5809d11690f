"""Unit tests for perf_engine.retry."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from perf_engine.errors import JobNotFoundError, TransientQueryError
from perf_engine.retry import RetryConfig, _compute_delay, retry_with_backoff


class TestRetryConfig:
    def test_defaults_suit_job_start_up(self):
        config = RetryConfig()
        assert config.max_retries == 5
        assert config.base_delay == 1.0
        assert config.max_delay == 15.0
        assert config.jitter is True

    def test_zero_retries_allowed(self):
        assert RetryConfig(max_retries=0).max_retries == 0


class TestComputeDelay:
    def test_exponential_growth_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=6.0, jitter=False)
        assert [_compute_delay(n, config) for n in range(5)] == [1.0, 2.0, 4.0, 6.0, 6.0]

    def test_jitter_bounds(self):
        config = RetryConfig(base_delay=4.0, max_delay=100.0, jitter=True)
        for _ in range(50):
            assert 2.0 <= _compute_delay(0, config) <= 6.0


class TestRetryWithBackoff:
    def test_first_try(self):
        sleep = MagicMock()
        assert retry_with_backoff(lambda: "ok", RetryConfig(), sleep=sleep) == "ok"
        sleep.assert_not_called()

    def test_job_appears_after_retries(self):
        sleep = MagicMock()
        fn = MagicMock(
            side_effect=[
                JobNotFoundError("backup", "perf-test", "openshift-adp"),
                TransientQueryError("connection refused"),
                "visible",
            ]
        )
        config = RetryConfig(max_retries=3, base_delay=1.0, jitter=False)

        result = retry_with_backoff(fn, config, (JobNotFoundError, TransientQueryError), sleep=sleep)

        assert result == "visible"
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_exhausted_reraises_last(self):
        fn = MagicMock(side_effect=[TransientQueryError("first"), TransientQueryError("second")])
        config = RetryConfig(max_retries=1, base_delay=0.5, jitter=False)

        with pytest.raises(TransientQueryError, match="second"):
            retry_with_backoff(fn, config, (TransientQueryError,), sleep=MagicMock())
        assert fn.call_count == 2

    def test_non_retryable_propagates(self):
        sleep = MagicMock()
        fn = MagicMock(side_effect=KeyError("boom"))

        with pytest.raises(KeyError):
            retry_with_backoff(fn, RetryConfig(), (TransientQueryError,), sleep=sleep)
        assert fn.call_count == 1
        sleep.assert_not_called()

