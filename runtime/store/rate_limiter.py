"""Fixed-window login rate limiter.

Each client key (the remote address) gets `max_attempts` login attempts
per `window_seconds`. The window starts at the first attempt and resets
once it has elapsed.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

from exceptions.exceptions import RateLimitExceeded


logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_MAX_ATTEMPTS = 20


@dataclass
class _Window:
    count: int
    reset_at: float


class LoginRateLimiter:
    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_attempts = max_attempts
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> int:
        """Count one attempt for `key` and return the attempts used so far.

        Raises RateLimitExceeded once the count passes `max_attempts`
        inside the current window.
        """
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = _Window(count=0, reset_at=now + self.window_seconds)
            self._windows[key] = window

        window.count += 1
        if window.count > self.max_attempts:
            logger.warning(
                "[AUTH] Rate limit exceeded for login: key=%s count=%d",
                key,
                window.count,
            )
            raise RateLimitExceeded(key, window.reset_at - now)
        return window.count

    def sweep_expired(self) -> int:
        """Drop windows that have elapsed; returns how many were removed."""
        now = self._clock()
        stale = [k for k, w in self._windows.items() if now > w.reset_at]
        for key in stale:
            del self._windows[key]
        if stale:
            logger.debug("[AUTH] Cleaned up %d old rate limit entries", len(stale))
        return len(stale)
