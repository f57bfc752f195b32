"""
In-memory rate limiter for the ingestion endpoint.
Caps how many events one (hashed) client may submit per window.
"""
import threading
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from fastapi import Request


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.
    Keys are opaque client identifiers (salted IP hashes), never raw IPs.
    For production with multiple workers, use Redis-based solution.
    """

    def __init__(self):
        # {client_key: [(timestamp, count), ...]}
        self._requests: Dict[str, List[Tuple[float, int]]] = defaultdict(list)
        self._lock = threading.Lock()

    def _cleanup_old_requests(self, key: str, window_seconds: int):
        """Remove requests older than the window."""
        cutoff = time.time() - window_seconds
        self._requests[key] = [
            (ts, count) for ts, count in self._requests[key]
            if ts > cutoff
        ]

    def _check(self, key: str, max_requests: int, window_seconds: int) -> Tuple[bool, int]:
        self._cleanup_old_requests(key, window_seconds)
        entries = self._requests[key]
        total_requests = sum(count for _, count in entries)

        if total_requests >= max_requests:
            # Oldest entry leaves the window first
            oldest = entries[0][0]
            retry_after = max(1, int(oldest + window_seconds - time.time()))
            return True, retry_after

        return False, 0

    def check_and_record(
        self,
        key: str,
        max_requests: int = 100,
        window_seconds: int = 60
    ) -> Tuple[bool, int]:
        """
        Admit one request if the client is under its limit.
        Returns (is_limited, retry_after_seconds); admitted requests are recorded.
        """
        with self._lock:
            is_limited, retry_after = self._check(key, max_requests, window_seconds)
            if not is_limited:
                self._requests[key].append((time.time(), 1))
            return is_limited, retry_after

    def clear(self):
        """Forget all recorded requests."""
        with self._lock:
            self._requests.clear()


# Global rate limiter instance for the ingestion endpoint
rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """Extract client IP, handling proxies."""
    # First IP in X-Forwarded-For is the client
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"
