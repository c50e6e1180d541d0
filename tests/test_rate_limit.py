import pytest

from colleaguematch.core.rate_limit import TokenBucketRateLimiter


def test_from_spacing_allows_one_event_then_waits(monkeypatch):
    now = {"t": 0.0}
    sleeps: list[float] = []

    def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        now["t"] += seconds

    monkeypatch.setattr("colleaguematch.core.rate_limit.time.monotonic", lambda: now["t"])
    monkeypatch.setattr("colleaguematch.core.rate_limit.time.sleep", fake_sleep)

    limiter = TokenBucketRateLimiter.from_spacing(0.5)
    limiter.acquire()
    assert sleeps == []

    limiter.acquire()
    # The second event had to wait for the bucket to refill (about one spacing interval).
    assert sum(sleeps) == pytest.approx(0.5, abs=0.02)
    assert limiter.waited_seconds == pytest.approx(sum(sleeps))


def test_invalid_rates_are_rejected():
    with pytest.raises(ValueError):
        TokenBucketRateLimiter(max_per_minute=0)
    with pytest.raises(ValueError):
        TokenBucketRateLimiter.from_spacing(0)
