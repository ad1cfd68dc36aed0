import time

import pytest

from tenantkit.fixed_window import FixedWindow


class FakeClock:
    def __init__(self):
        self.now = 500.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(time, "monotonic", fake)
    return fake


@pytest.mark.parametrize(
    "limit,requests,want",
    [
        (10, 1, True),
        (10, 10, True),
        (10, 11, False),
    ],
)
def test_basic(limit, requests, want):
    fw = FixedWindow(limit, 1.0)
    assert fw.allow_n("test-key", requests) is want


def test_reset():
    fw = FixedWindow(5, 1.0)
    assert fw.allow_n("test-key", 5) is True
    assert fw.allow_n("test-key", 1) is False
    fw.reset("test-key")
    assert fw.allow_n("test-key", 5) is True


def test_window_rolls_over(clock):
    fw = FixedWindow(3, 2.0)
    assert fw.allow_n("k", 3) is True
    assert fw.remaining("k") == 0
    clock.now += 1.5
    assert fw.allow("k") is False
    clock.now += 1.0
    assert fw.remaining("k") == 3
    assert fw.allow("k") is True
    assert fw.remaining("k") == 2


def test_remaining_unknown_key():
    fw = FixedWindow(4, 1.0)
    assert fw.remaining("x") == 4


def test_zero_requests_allowed_when_full():
    fw = FixedWindow(1, 1.0)
    fw.allow("k")
    assert fw.allow_n("k", 0) is True
    assert fw.remaining("k") == 0


def test_minimums_and_stats():
    fw = FixedWindow(-5, 0.2)
    fw.allow("a")
    fw.health()
    stats = fw.stats()
    assert stats == {"limit": 1, "window_size": 1.0, "active_windows": 1}