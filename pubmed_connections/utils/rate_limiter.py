"""
Request pacing for NCBI E-utilities.

NCBI allows 3 requests/second without an API key and 10 with one; clients
that exceed this get their IP blocked. Retry pacing for transient failures
lives here as well.
"""

import asyncio
import time
import logging

from ..config import Config

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket shared by every request a client issues.

    Tokens refill continuously at ``max_requests / window`` per second and
    the bucket never holds more than ``max_requests`` tokens.
    """

    def __init__(self, max_requests: int = 3, window: float = 1.0):
        self.max_requests = max_requests
        self.window = window
        self.tokens = float(max_requests)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

        logger.debug(f"RateLimiter: {max_requests} requests per {window}s")

    @classmethod
    def for_api_key(cls, api_key_present: bool) -> "RateLimiter":
        """Build a limiter sized to NCBI's published per-key limits."""
        max_requests = (
            Config.MAX_REQUESTS_PER_SEC_WITH_KEY
            if api_key_present
            else Config.MAX_REQUESTS_PER_SEC_WITHOUT_KEY
        )
        return cls(max_requests=max_requests, window=1.0)

    def _refill(self, now: float) -> None:
        elapsed = now - self.last_update
        self.tokens = min(
            float(self.max_requests),
            self.tokens + elapsed * (self.max_requests / self.window)
        )
        self.last_update = now

    async def acquire(self) -> None:
        """Consume one token, sleeping until one is available."""
        async with self._lock:
            self._refill(time.monotonic())

            if self.tokens >= 1:
                self.tokens -= 1
                return

            wait_time = (1 - self.tokens) * (self.window / self.max_requests)
            logger.debug(f"Rate limit reached, waiting {wait_time:.3f}s")
            await asyncio.sleep(wait_time)
            self._refill(time.monotonic())
            self.tokens = max(0.0, self.tokens - 1)

    @property
    def available_tokens(self) -> float:
        """Tokens available right now, without consuming any."""
        elapsed = time.monotonic() - self.last_update
        return min(
            float(self.max_requests),
            self.tokens + elapsed * (self.max_requests / self.window)
        )


class RetryHandler:
    """Exponential backoff for retryable HTTP failures."""

    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        backoff_factor: float = 2.0,
        max_delay: float = 60.0
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """Whether a response with ``status_code`` on ``attempt`` gets another try."""
        return status_code in self.RETRYABLE_STATUS_CODES and attempt < self.max_retries

    def get_delay(self, attempt: int) -> float:
        """
        Delay before retrying after ``attempt`` (0-indexed).

        ``base_delay * backoff_factor ** attempt``, capped at ``max_delay``.
        """
        delay = self.base_delay * (self.backoff_factor ** attempt)
        return min(delay, self.max_delay)

    async def wait(self, attempt: int) -> None:
        delay = self.get_delay(attempt)
        logger.info(f"Retry attempt {attempt + 1}/{self.max_retries}, waiting {delay:.1f}s")
        await asyncio.sleep(delay)
