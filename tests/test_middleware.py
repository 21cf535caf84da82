import pytest
from fastapi.testclient import TestClient

from apinotice.config import Settings
from apinotice.interfaces.api.rate_limit import FixedWindowRateLimiter


class _Ticker:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_limiter_allows_up_to_limit_per_window():
    ticker = _Ticker()
    limiter = FixedWindowRateLimiter(2, 10, clock=ticker)

    first = limiter.hit("1.2.3.4")
    second = limiter.hit("1.2.3.4")
    third = limiter.hit("1.2.3.4")

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert (third.allowed, third.remaining) == (False, 0)
    assert third.reset_after == 10
    assert limiter.hit("5.6.7.8").allowed


def test_limiter_opens_new_window_after_expiry():
    ticker = _Ticker()
    limiter = FixedWindowRateLimiter(1, 10, clock=ticker)
    limiter.hit("client")
    assert not limiter.hit("client").allowed

    ticker.now += 10
    decision = limiter.hit("client")

    assert decision.allowed
    assert decision.reset_after == 10


def test_purge_drops_only_expired_windows():
    ticker = _Ticker()
    limiter = FixedWindowRateLimiter(5, 10, clock=ticker)
    limiter.hit("old")
    ticker.now += 6
    limiter.hit("recent")
    ticker.now += 5

    assert limiter.purge_expired() == 1
    assert len(limiter) == 1


@pytest.mark.parametrize("limit, window", [(0, 10), (5, 0)])
def test_limiter_rejects_invalid_configuration(limit, window):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(limit, window)


def test_middleware_throttles_per_client():
    from main import create_app

    app = create_app(
        Settings(rate_limit_requests=2, rate_limit_window_seconds=60, notify_dispatcher_enabled=False)
    )
    with TestClient(app) as client:
        responses = [client.get("/health") for _ in range(3)]
        other = client.get("/health", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert [response.status_code for response in responses] == [200, 200, 429]
    assert responses[0].headers["X-RateLimit-Limit"] == "2"
    assert responses[0].headers["X-RateLimit-Remaining"] == "1"
    assert responses[2].headers["X-RateLimit-Remaining"] == "0"
    assert int(responses[2].headers["X-RateLimit-Reset"]) <= 60
    assert other.status_code == 200


def test_security_headers_are_set_on_every_response():
    from main import create_app

    app = create_app(
        Settings(rate_limit_requests=1, rate_limit_window_seconds=60, notify_dispatcher_enabled=False)
    )
    with TestClient(app) as client:
        allowed = client.get("/health")
        throttled = client.get("/health")

    for response in (allowed, throttled):
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
    assert throttled.status_code == 429
