"""
In-memory fixed-window counters for rate limiting.
WARNING: This is single-instance only and data is lost on restart.
"""

from datetime import datetime, timedelta
from typing import Tuple
import threading


class RateLimitStore:
    """Per-key request counters over fixed windows, guarded by a lock"""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self.counters = {}  # rate:key -> (count, window expiry)
        self.lock = threading.Lock()

    def _is_expired(self, expiry_time):
        """Check if timestamp has expired"""
        return datetime.utcnow() > expiry_time

    def _cleanup_expired(self):
        """Drop finished windows"""
        now = datetime.utcnow()
        self.counters = {k: v for k, v in self.counters.items() if v[1] > now}

    def hit(self, key: str) -> Tuple[bool, int, datetime]:
        """
        Count one request for `key`.

        Returns (allowed, remaining, window reset time).
        """
        with self.lock:
            rate_key = f"rate:{key}"
            count, expiry = self.counters.get(rate_key, (0, None))
            if expiry is None or self._is_expired(expiry):
                if len(self.counters) > 10000:
                    self._cleanup_expired()
                count, expiry = 0, datetime.utcnow() + self.window
            count += 1
            self.counters[rate_key] = (count, expiry)
            return count <= self.limit, max(self.limit - count, 0), expiry

    def reset(self, key: str):
        with self.lock:
            self.counters.pop(f"rate:{key}", None)
