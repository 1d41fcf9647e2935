"""Property-based tests for retry logic with exponential backoff."""

import time

import pytest
import structlog
from hypothesis import given, settings, strategies as st

from content_mirror.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()


@given(
    st.integers(min_value=1, max_value=3),
    st.floats(min_value=0.01, max_value=0.05),
)
@settings(max_examples=10, deadline=None)
def test_backoff_delays_grow_exponentially(num_failures: int, base_delay: float):
    """Each retry waits at least base_delay * 2**attempt before calling again."""
    log.info("test_backoff_delays_grow_exponentially", num_failures=num_failures)
    call_times = []

    @exponential_backoff_retry(
        max_retries=num_failures,
        base_delay=base_delay,
        max_delay=60.0,
        exceptions=(ValueError,),
    )
    def flaky():
        call_times.append(time.monotonic())
        if len(call_times) <= num_failures:
            raise ValueError(f"Simulated failure {len(call_times)}")
        return "success"

    assert flaky() == "success"
    assert len(call_times) == num_failures + 1

    tolerance = 0.005
    for attempt in range(num_failures):
        delay = call_times[attempt + 1] - call_times[attempt]
        assert delay >= base_delay * (2**attempt) - tolerance


@given(st.integers(min_value=0, max_value=6))
@settings(max_examples=20, deadline=None)
def test_retries_stop_after_max_retries(max_retries: int):
    call_count = 0

    @exponential_backoff_retry(
        max_retries=max_retries,
        base_delay=0.001,
        max_delay=0.01,
        exceptions=(ValueError,),
    )
    def always_failing():
        nonlocal call_count
        call_count += 1
        raise ValueError("Always fails")

    with pytest.raises(ValueError):
        always_failing()

    assert call_count == max_retries + 1


def test_should_retry_predicate_short_circuits():
    call_count = 0

    @exponential_backoff_retry(
        max_retries=5,
        base_delay=0.001,
        exceptions=(ValueError,),
        should_retry=lambda error: "transient" in str(error),
    )
    def permanent_failure():
        nonlocal call_count
        call_count += 1
        raise ValueError("permanent")

    with pytest.raises(ValueError):
        permanent_failure()

    assert call_count == 1


def test_unlisted_exceptions_are_not_retried():
    call_count = 0

    @exponential_backoff_retry(max_retries=3, base_delay=0.001, exceptions=(ValueError,))
    def wrong_type():
        nonlocal call_count
        call_count += 1
        raise KeyError("not retried")

    with pytest.raises(KeyError):
        wrong_type()

    assert call_count == 1
