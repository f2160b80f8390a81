"""
Fixed-window rate limiting keyed by an arbitrary identifier
(session id for chat, username for login).
"""

import logging
import threading
import time
from typing import Callable, Dict, Tuple

logger = logging.getLogger("concierge.app")


class RateLimiter:
    def __init__(
        self,
        max_attempts: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        # identifier -> (count, window reset time)
        self._attempts: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def allow(self, identifier: str) -> bool:
        """
        Count one attempt for ``identifier`` and report whether it is
        within the limit for the current window.
        """
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            count, reset_at = self._attempts.get(identifier, (0, now + self.window_seconds))
            count += 1
            self._attempts[identifier] = (count, reset_at)

        allowed = count <= self.max_attempts
        if not allowed:
            logger.warning("Rate limit exceeded for %s (%d/%d)", identifier, count, self.max_attempts)
        return allowed

    def _purge_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, (_, reset_at) in self._attempts.items() if now > reset_at]
        for key in expired:
            del self._attempts[key]

    def __len__(self) -> int:
        return len(self._attempts)

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier, None)
