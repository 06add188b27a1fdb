import random

import pytest
import requests

from glycorisk.prediction.retry import RetryPolicy, is_retryable_status


def test_exponential_delay_without_jitter():
    policy = RetryPolicy(max_attempts=5, base_delay=0.5, max_delay=3.0, jitter=False)
    assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 3.0]


def test_jittered_delay_stays_within_half_to_full():
    policy = RetryPolicy(base_delay=1.0, max_delay=8.0, jitter=True, rng=random.Random(7))
    for attempt in (1, 2, 3):
        full = 2 ** (attempt - 1)
        delay = policy.delay_for(attempt)
        assert full / 2 <= delay <= full


@pytest.mark.parametrize(
    "status,expected",
    [(500, True), (502, True), (503, True), (599, True), (408, True), (400, False), (404, False), (429, False)],
)
def test_status_classification(status, expected):
    assert is_retryable_status(status) is expected


def test_should_retry_respects_attempt_budget():
    policy = RetryPolicy(max_attempts=3, jitter=False)
    assert policy.should_retry(1, status_code=503)
    assert policy.should_retry(2, status_code=503)
    assert not policy.should_retry(3, status_code=503)


def test_should_retry_on_network_errors_only():
    policy = RetryPolicy(max_attempts=3)
    assert policy.should_retry(1, exc=requests.ConnectionError())
    assert policy.should_retry(1, exc=requests.Timeout())
    assert not policy.should_retry(1, exc=requests.exceptions.InvalidURL())


def test_custom_predicate():
    policy = RetryPolicy(max_attempts=2, retry_on_status=lambda s: s == 429)
    assert policy.should_retry(1, status_code=429)
    assert not policy.should_retry(1, status_code=503)


def test_invalid_configuration():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(base_delay=-1)


def test_from_settings():
    class _Settings:
        SCORING_MAX_ATTEMPTS = 2
        SCORING_BACKOFF_BASE_SECONDS = 0.25
        SCORING_BACKOFF_MAX_SECONDS = 4.0
        SCORING_BACKOFF_JITTER = False

    policy = RetryPolicy.from_settings(_Settings())
    assert (policy.max_attempts, policy.base_delay, policy.max_delay, policy.jitter) == (2, 0.25, 4.0, False)
