"""Tests for rate limiting service and route guard."""
import pytest
import redis
from fastapi import HTTPException, Response
from unittest.mock import MagicMock

from splitlab.api.deps import RateLimitGuard
from splitlab.config import Settings
from splitlab.middleware.logging import client_ip
from splitlab.services.rate_limiter import RateLimiter


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis_mock = MagicMock()
    pipe_mock = MagicMock()
    redis_mock.pipeline.return_value = pipe_mock
    return redis_mock


def set_count(mock_redis, count):
    mock_redis.pipeline.return_value.execute.return_value = [count, True]


def fake_request(ip="203.0.113.9", forwarded=None):
    request = MagicMock()
    request.headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    request.client.host = ip
    return request


def test_hit_under_limit_is_allowed(mock_redis):
    set_count(mock_redis, 3)
    limiter = RateLimiter(mock_redis, limit=5, window=60)

    allowed, remaining = limiter.hit("content", "1.2.3.4")

    assert allowed is True
    assert remaining == 2


def test_hit_at_limit_is_allowed(mock_redis):
    set_count(mock_redis, 5)
    limiter = RateLimiter(mock_redis, limit=5, window=60)

    assert limiter.hit("content", "1.2.3.4") == (True, 0)


def test_hit_over_limit_is_rejected(mock_redis):
    set_count(mock_redis, 6)
    limiter = RateLimiter(mock_redis, limit=5, window=60)

    assert limiter.hit("content", "1.2.3.4") == (False, 0)


def test_hit_increments_and_sets_expiry(mock_redis):
    set_count(mock_redis, 1)
    limiter = RateLimiter(mock_redis, limit=5, window=60)

    limiter.hit("track_view", "1.2.3.4")

    pipe = mock_redis.pipeline.return_value
    key = pipe.incr.call_args[0][0]
    assert key.startswith("rate_limit:track_view:1.2.3.4:")
    pipe.expire.assert_called_once_with(key, 60)
    pipe.execute.assert_called_once()


def test_reset_deletes_client_windows(mock_redis):
    mock_redis.scan_iter.return_value = ["rate_limit:content:1.2.3.4:1", "rate_limit:content:1.2.3.4:2"]
    limiter = RateLimiter(mock_redis)

    limiter.reset("content", "1.2.3.4")

    assert mock_redis.delete.call_count == 2


def test_guard_disabled_skips_redis(mock_redis):
    limiter = RateLimiter(mock_redis, limit=1)
    guard = RateLimitGuard("content", limiter=limiter, enabled=False)

    guard(fake_request(), Response())

    mock_redis.pipeline.assert_not_called()


def test_guard_sets_headers_when_allowed(mock_redis):
    set_count(mock_redis, 1)
    guard = RateLimitGuard("content", limiter=RateLimiter(mock_redis, limit=10), enabled=True)
    response = Response()

    guard(fake_request(), response)

    assert response.headers["X-RateLimit-Limit"] == "10"
    assert response.headers["X-RateLimit-Remaining"] == "9"


def test_guard_raises_429_over_limit(mock_redis):
    set_count(mock_redis, 11)
    guard = RateLimitGuard("content", limiter=RateLimiter(mock_redis, limit=10), enabled=True)

    with pytest.raises(HTTPException) as exc_info:
        guard(fake_request(), Response())

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["X-RateLimit-Remaining"] == "0"


def test_guard_ignores_forwarded_header_from_untrusted_peer(mock_redis):
    """Rotating X-Forwarded-For values must not give a direct client fresh counters."""
    set_count(mock_redis, 1)
    guard = RateLimitGuard(
        "content", limiter=RateLimiter(mock_redis, limit=1), enabled=True, trusted_proxies=frozenset()
    )

    for spoofed in ("10.0.0.0", "10.0.0.1", "10.0.0.2"):
        guard(fake_request(ip="203.0.113.9", forwarded=spoofed), Response())

    keys = {call[0][0] for call in mock_redis.pipeline.return_value.incr.call_args_list}
    assert len(keys) == 1
    assert ":203.0.113.9:" in keys.pop()


def test_guard_keys_on_forwarded_client_behind_trusted_proxy(mock_redis):
    set_count(mock_redis, 1)
    guard = RateLimitGuard(
        "content",
        limiter=RateLimiter(mock_redis, limit=10),
        enabled=True,
        trusted_proxies=frozenset({"10.0.0.5"})
    )

    guard(fake_request(ip="10.0.0.5", forwarded="198.51.100.7, 10.0.0.1"), Response())

    key = mock_redis.pipeline.return_value.incr.call_args[0][0]
    assert ":198.51.100.7:" in key


def test_client_ip_only_trusts_forwarded_from_trusted_peer():
    request = fake_request(ip="203.0.113.9", forwarded="198.51.100.7")

    assert client_ip(request) == "203.0.113.9"
    assert client_ip(request, frozenset({"192.0.2.1"})) == "203.0.113.9"
    assert client_ip(request, frozenset({"203.0.113.9"})) == "198.51.100.7"


def test_guard_fails_open_when_redis_is_down(mock_redis):
    mock_redis.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
    guard = RateLimitGuard("content", limiter=RateLimiter(mock_redis, limit=10), enabled=True)

    guard(fake_request(), Response())


def test_trusted_proxies_setting_is_comma_separated():
    settings = Settings(forwarded_allow_ips=" 10.0.0.5, 10.0.0.6 ,,")

    assert settings.trusted_proxies == frozenset({"10.0.0.5", "10.0.0.6"})
    assert Settings(forwarded_allow_ips="").trusted_proxies == frozenset()
    assert not hasattr(settings, "frontend_url")
