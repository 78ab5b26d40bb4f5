"""
Unit tests for backoff schedules.
"""

import pytest

from provider_gateway.dispatch.policy import (
    ColdStartBackoff,
    RetryPolicy,
    TransientBackoff,
    parse_retry_after,
)
from provider_gateway.models.enums import Classification


def test_cold_start_schedule_values():
    backoff = ColdStartBackoff()

    delays = [backoff.delay_ms(n) for n in range(5)]

    assert delays == pytest.approx([5000, 7500, 11250, 16875, 25312.5])
    assert backoff.delay_ms(5) is None


def test_cold_start_delay_capped():
    backoff = ColdStartBackoff(max_retries=10)

    assert backoff.delay_ms(5) == 30000
    assert backoff.delay_ms(9) == 30000


def test_transient_schedule_with_jitter_bounds():
    """Test jitter keeps each delay within [0.5, 1.5) of the base."""
    low = TransientBackoff(random=lambda: 0.0)
    high = TransientBackoff(random=lambda: 0.999)

    assert low.delay_ms(0) == pytest.approx(500)
    assert low.delay_ms(2) == pytest.approx(2000)
    assert high.delay_ms(0) == pytest.approx(1499)
    assert high.delay_ms(2) == pytest.approx(5996)


def test_transient_budget():
    backoff = TransientBackoff(random=lambda: 0.5)

    assert [backoff.delay_ms(n) for n in range(3)] == pytest.approx([1000, 2000, 4000])
    assert backoff.delay_ms(3) is None


def test_transient_delay_capped():
    backoff = TransientBackoff(max_retries=20, random=lambda: 0.5)

    assert backoff.delay_ms(10) == 30000


def test_retry_after_overrides_schedule():
    backoff = TransientBackoff(random=lambda: 0.5)

    assert backoff.delay_ms(0, "3") == 3000
    assert backoff.delay_ms(2, "0.5") == 500


def test_retry_after_not_capped():
    """Test a long Retry-After is honored as sent."""
    backoff = TransientBackoff(random=lambda: 0.5)

    assert backoff.delay_ms(0, "120") == 120000


def test_retry_after_does_not_extend_budget():
    backoff = TransientBackoff(random=lambda: 0.5)

    assert backoff.delay_ms(3, "1") is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2", 2.0),
        (" 1.5 ", 1.5),
        ("0", 0.0),
        ("-4", 0.0),
        (None, None),
        ("Wed, 21 Oct 2015 07:28:00 GMT", None),
        ("soon", None),
    ],
)
def test_parse_retry_after(value, expected):
    assert parse_retry_after(value) == expected


def test_retry_policy_dispatches_on_classification():
    policy = RetryPolicy(transient=TransientBackoff(random=lambda: 0.5))

    assert policy.next_delay_ms(Classification.RETRYABLE_COLD, 1, {}) == pytest.approx(7500)
    assert policy.next_delay_ms(Classification.RETRYABLE_GENERIC, 1, {}) == pytest.approx(2000)
    assert policy.next_delay_ms(Classification.TERMINAL, 0, {}) is None


def test_retry_policy_reads_retry_after_header():
    policy = RetryPolicy()

    delay = policy.next_delay_ms(Classification.RETRYABLE_GENERIC, 0, {"retry-after": "4"})

    assert delay == 4000


def test_retry_policy_elapsed_ceiling():
    policy = RetryPolicy(max_elapsed_ms=10000)

    assert policy.next_delay_ms(Classification.RETRYABLE_COLD, 0, {}, elapsed_ms=0) == 5000
    assert policy.next_delay_ms(Classification.RETRYABLE_COLD, 1, {}, elapsed_ms=5000) is None


def test_retry_policy_from_settings(test_settings):
    settings = test_settings.model_copy(
        update={
            "GENERIC_MAX_RETRIES": 1,
            "COLD_START_MAX_RETRIES": 2,
            "COLD_START_BASE_DELAY_MS": 100.0,
            "RETRY_MAX_ELAPSED_SECONDS": 60.0,
        }
    )

    policy = RetryPolicy.from_settings(settings, rand=lambda: 0.5)

    assert policy.transient.max_retries == 1
    assert policy.cold_start.max_retries == 2
    assert policy.cold_start.delay_ms(0) == 100
    assert policy.max_elapsed_ms == 60000


def test_retry_policy_from_default_settings_has_no_ceiling(test_settings):
    policy = RetryPolicy.from_settings(test_settings)

    assert policy.max_elapsed_ms is None
    assert policy.cold_start.max_retries == 5
    assert policy.transient.max_retries == 3
