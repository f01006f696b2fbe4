"""Rate limiting for the public content and track-view endpoints."""
import time
from typing import Tuple

import redis


class RateLimiter:
    """
    Redis-based fixed window limiter.

    Keys look like ``rate_limit:{scope}:{client}:{window_index}`` where the
    window index is the epoch time divided by the window length, so a new
    counter starts every ``window`` seconds and the old one expires on its own.
    """

    def __init__(self, redis_client: redis.Redis, limit: int = 600, window: int = 60):
        self.redis = redis_client
        self.limit = limit
        self.window = window

    def _window_key(self, scope: str, client: str) -> str:
        window_index = int(time.time()) // self.window
        return f"rate_limit:{scope}:{client}:{window_index}"

    def hit(self, scope: str, client: str) -> Tuple[bool, int]:
        """
        Count one request and report whether it is within the limit.

        Returns:
            Tuple of (allowed, remaining requests in the current window)
        """
        key = self._window_key(scope, client)

        pipe = self.redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window)
        count = int(pipe.execute()[0])

        return count <= self.limit, max(0, self.limit - count)

    def reset(self, scope: str, client: str) -> None:
        """Clear all windows for a client (useful for testing)."""
        for key in self.redis.scan_iter(match=f"rate_limit:{scope}:{client}:*"):
            self.redis.delete(key)
