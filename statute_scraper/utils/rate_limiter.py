"""Rate limiting and retry logic."""

import asyncio
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from statute_scraper.utils.logger import get_logger

logger = get_logger(__name__)

# Errors worth another attempt. HTTP error statuses are answers, not transient failures.
TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
)


class RateLimiter:
    """Minimum-spacing rate limiter for async operations."""

    def __init__(self, min_delay: float = 2.0):
        """
        Initialize rate limiter.

        Args:
            min_delay: Minimum seconds between the start of two operations
        """
        self.min_delay = float(min_delay)
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    def raise_floor(self, delay: Optional[float]):
        """Raise the minimum spacing to a larger site-requested delay."""
        if delay and delay > self.min_delay:
            logger.info(f"Raising request spacing from {self.min_delay}s to {delay}s")
            self.min_delay = float(delay)

    async def wait(self) -> float:
        """Wait until enough time has passed since last call. Returns seconds slept."""
        async with self._lock:
            waited = 0.0
            elapsed = time.monotonic() - self.last_request_time
            if self.last_request_time and elapsed < self.min_delay:
                waited = self.min_delay - elapsed
                logger.debug(f"Rate limiting: waiting {waited:.2f}s")
                await asyncio.sleep(waited)
            self.last_request_time = time.monotonic()
            return waited


def retrying(max_attempts: int = 3, backoff_factor: float = 1.0, wait_max: float = 10) -> AsyncRetrying:
    """Build a tenacity controller that retries transient network errors."""
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=backoff_factor, max=wait_max),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            f"Retry {retry_state.attempt_number}/{max_attempts} after error: "
            f"{retry_state.outcome.exception()!r}"
        ),
    )


def retry_on_failure(max_attempts: int = 3, backoff_factor: float = 1.0):
    """Decorator for retrying async callables on transient network failures."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            async for attempt in retrying(max_attempts, backoff_factor):
                with attempt:
                    return await func(*args, **kwargs)

        return wrapper
    return decorator
