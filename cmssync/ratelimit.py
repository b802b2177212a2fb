import logging
import time
from threading import Lock

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval rate limiter (thread-safe).

    Guarantees that two acquisitions are never closer together than `delay`
    seconds. The first call proceeds immediately; every later call sleeps for
    whatever is left of the interval since the previous call. The lock is held
    while sleeping, so concurrent callers are served one after another.

    One limiter is shared by every request an adapter makes, including
    requests made from parallel reconciliation threads.
    """

    def __init__(self, delay: float):
        if delay < 0:
            raise ValueError('delay must be >= 0')
        self._delay = delay
        self._last_call = None   # stamped lazily on first request
        self._lock = Lock()

    @property
    def delay(self) -> float:
        return self._delay

    def acquire(self) -> float:
        """Block until the next call is allowed. Returns the seconds waited."""
        with self._lock:
            waited = 0.0
            if self._last_call is not None:
                wait = self._delay - (time.monotonic() - self._last_call)
                if wait > 0:
                    logger.debug("Rate limit: waiting %.3fs before next CMS call.", wait)
                    time.sleep(wait)
                    waited = wait
            self._last_call = time.monotonic()
            return waited
