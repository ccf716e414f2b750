"""
Rate limiting for AI generation and live progress writes
"""
import time
from collections import defaultdict
from fastapi import HTTPException
from typing import Dict, List, Tuple
import logging

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter keyed by caller-chosen ids
    Production: Use Redis for distributed rate limiting
    """

    def __init__(self, name: str, windows: List[Tuple[int, int]]):
        """
        Args:
            name: Label used in logs and error messages
            windows: (window_seconds, max_requests) pairs
        """
        self.name = name
        self.windows = windows
        # Storage: {key: [timestamps]}
        self.tracker: Dict[str, list] = defaultdict(list)
        self._last_sweep = time.time()

    @property
    def longest_window(self) -> int:
        return max(seconds for seconds, _ in self.windows)

    def _cleanup(self, key: str, now: float) -> None:
        self.tracker[key] = [ts for ts in self.tracker[key] if ts > now - self.longest_window]
        if not self.tracker[key]:
            del self.tracker[key]

    def _sweep(self, now: float) -> None:
        """Forget keys with no request inside the longest window"""
        cutoff = now - self.longest_window
        idle = [key for key, history in self.tracker.items() if not history or history[-1] <= cutoff]
        for key in idle:
            del self.tracker[key]
        self._last_sweep = now
        if idle:
            logger.debug(f"Rate limiter {self.name}: dropped {len(idle)} idle key(s)")

    def check(self, key: str) -> None:
        """
        Record a request for key, or reject it

        Keys are only pruned when checked, so every longest-window period a
        sweep drops the keys that went quiet.

        Raises:
            HTTPException: 429 if any window is exhausted
        """
        now = time.time()
        if now - self._last_sweep >= self.longest_window:
            self._sweep(now)
        self._cleanup(key, now)
        history = self.tracker[key]

        for seconds, limit in self.windows:
            recent = sum(1 for ts in history if ts > now - seconds)
            if recent >= limit:
                logger.warning(f"Rate limit exceeded ({self.name}, {seconds}s): {key}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many {self.name} requests. Limit: {limit} per {seconds} seconds",
                        "retry_after": seconds
                    }
                )

        history.append(now)
        logger.debug(f"Rate limit check passed: {self.name} {key} ({len(history)} in window)")

    def reset(self) -> None:
        self.tracker.clear()
        self._last_sweep = time.time()


# Global instances
generation_limiter = RateLimiter(
    "generation",
    [(60, settings.GENERATION_LIMIT_PER_MINUTE), (3600, settings.GENERATION_LIMIT_PER_HOUR)]
)
live_update_limiter = RateLimiter(
    "live update",
    [(60, settings.LIVE_UPDATE_LIMIT_PER_MINUTE)]
)
