"""
Per-address sliding window rate limiting for /api/ routes.

Each address keeps a deque of request timestamps; entries older than the
window are dropped before counting, and addresses with nothing left in
the window are swept every `cleanup_interval` seconds. State is process
local and guarded by a lock since the WSGI server may handle requests on
several threads.
"""
import logging
import threading
import time
from collections import defaultdict, deque

from flask import current_app, request

from payhub.errors import error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class SlidingWindowRateLimiter:

    def __init__(self, max_requests=100, window_seconds=900, cleanup_interval=300):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._hits = defaultdict(deque)
        self._last_cleanup = None
        self._lock = threading.Lock()

    def _cleanup_if_needed(self, now):
        """Periodically drop addresses with no hits left in the window."""
        if self._last_cleanup is None:
            self._last_cleanup = now
            return
        if now - self._last_cleanup < self.cleanup_interval:
            return
        self._last_cleanup = now

        window_start = now - self.window_seconds
        for identifier in list(self._hits):
            hits = self._hits[identifier]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if not hits:
                del self._hits[identifier]

    def is_allowed(self, identifier, now=None):
        """
        Record a request for `identifier` if it fits in the window.

        Returns:
            tuple: (is_allowed, remaining_requests, retry_after_seconds)
        """
        now = time.monotonic() if now is None else now
        window_start = now - self.window_seconds

        with self._lock:
            self._cleanup_if_needed(now)

            hits = self._hits[identifier]
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.max_requests:
                retry_after = int(hits[0] + self.window_seconds - now) + 1
                return False, 0, retry_after

            hits.append(now)
            return True, self.max_requests - len(hits), 0

    def tracked_addresses(self):
        with self._lock:
            return len(self._hits)

    def reset(self):
        with self._lock:
            self._hits.clear()
            self._last_cleanup = None


def init_rate_limiter(app):
    """Attach the limiter to `app` as a before_request hook."""
    limiter = SlidingWindowRateLimiter(
        max_requests=app.config.get('RATE_LIMIT_MAX_REQUESTS', 100),
        window_seconds=app.config.get('RATE_LIMIT_WINDOW_SECONDS', 900)
    )
    app.extensions['rate_limiter'] = limiter

    @app.before_request
    def enforce_rate_limit():
        if not current_app.config.get('RATE_LIMIT_ENABLED', True):
            return None
        if not request.path.startswith('/api/') or request.method == 'OPTIONS':
            return None

        allowed, remaining, retry_after = limiter.is_allowed(request.remote_addr or 'unknown')
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", request.remote_addr, request.path)
            response, status_code = error_response(RATE_LIMIT_MESSAGE, 429)
            response.headers['Retry-After'] = str(retry_after)
            return response, status_code
        return None

    return limiter
