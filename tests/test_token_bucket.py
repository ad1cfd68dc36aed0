import time

import pytest

from tenantkit.token_bucket import TokenBucket


@pytest.mark.parametrize(
    "rps,burst,requests,want",
    [
        (10, 10, 1, True),
        (10, 10, 5, True),
        (10, 10, 10, True),
        (10, 10, 11, False),
    ],
)
def test_basic(rps, burst, requests, want):
    tb = TokenBucket(rps, burst)
    assert tb.allow_n("test-key", requests) is want


def test_refill():
    tb = TokenBucket(10, 10)
    assert tb.allow_n("test-key", 10) is True
    assert tb.allow_n("test-key", 1) is False
    time.sleep(0.15)
    assert tb.allow_n("test-key", 1) is True


def test_remaining():
    tb = TokenBucket(10, 10)
    assert tb.remaining("test-key") == 10
    tb.allow_n("test-key", 5)
    assert tb.remaining("test-key") == 5


def test_zero_requests_always_allowed():
    tb = TokenBucket(1, 1)
    tb.allow_n("k", 1)
    assert tb.allow_n("k", 0) is True


def test_reset_restores_burst():
    tb = TokenBucket(10, 3)
    assert tb.allow_n("k", 3) is True
    assert tb.allow("k") is False
    tb.reset("k")
    assert tb.remaining("k") == 3
    assert tb.allow("k") is True


def test_defaults_for_invalid_arguments():
    tb = TokenBucket(0, 0)
    stats = tb.stats()
    assert stats["rps"] == 1.0
    assert stats["burst_size"] == 1


def test_stats():
    tb = TokenBucket(10, 10)
    tb.allow("a")
    tb.allow("b")
    tb.health()
    stats = tb.stats()
    assert stats["rps"] == 10.0
    assert stats["burst_size"] == 10
    assert stats["active_buckets"] == 2
    assert stats["window_duration"] == 3600.0


def test_keys_are_isolated():
    tb = TokenBucket(10, 2)
    tb.allow_n("one", 2)
    assert tb.allow("one") is False
    assert tb.allow("two") is True