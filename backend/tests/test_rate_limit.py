from goldpulse.core.rate_limit import RequestRateLimiter


def test_requests_over_limit_are_refused_until_window_passes() -> None:
    limiter = RequestRateLimiter(limit=2, window_seconds=60)
    assert limiter.allow("10.0.0.1:/api/v1/dashboard/pulse", now=100.0) is True
    assert limiter.allow("10.0.0.1:/api/v1/dashboard/pulse", now=101.0) is True
    assert limiter.allow("10.0.0.1:/api/v1/dashboard/pulse", now=102.0) is False
    assert limiter.allow("10.0.0.2:/api/v1/dashboard/pulse", now=102.0) is True
    assert limiter.allow("10.0.0.1:/api/v1/dashboard/pulse", now=161.5) is True


def test_idle_clients_are_evicted() -> None:
    limiter = RequestRateLimiter(limit=5, window_seconds=60)
    for index in range(50):
        limiter.allow(f"10.0.0.{index}:/healthz", now=100.0)
    assert len(limiter) == 50
    limiter.allow("10.0.1.1:/healthz", now=200.0)
    assert len(limiter) == 1
