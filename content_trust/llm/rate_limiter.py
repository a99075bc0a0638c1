"""Token bucket rate limiter for inference request throttling."""

import asyncio
import time
from typing import Optional

from loguru import logger


class TokenBucket:
    """
    Token bucket algorithm implementation for rate limiting.

    Tokens refill continuously at a fixed rate. Requests consume tokens.
    If insufficient tokens are available, acquire() waits until enough
    tokens have refilled.

    Attributes:
        capacity: Maximum number of tokens the bucket can hold
        refill_rate: Tokens added per second
        tokens: Current number of tokens available
        last_refill: Monotonic timestamp of last token refill
    """

    def __init__(self, capacity: int, refill_rate: float):
        """
        Initialize token bucket with capacity and refill rate.

        Args:
            capacity: Maximum tokens (e.g., 60 for 60 RPM)
            refill_rate: Tokens per second (e.g., 1.0 = 60 per minute)
        """
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

        logger.debug(
            f"TokenBucket initialized: capacity={capacity}, "
            f"refill_rate={refill_rate}/s"
        )

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def try_acquire(self, tokens: int = 1) -> bool:
        """Take tokens if available right now, without waiting."""
        self._refill()
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    async def acquire(self, tokens: int = 1) -> None:
        """
        Wait until tokens are available, then consume them.

        Args:
            tokens: Number of tokens to acquire
        """
        async with self._lock:
            while not self.try_acquire(tokens):
                deficit = tokens - self.tokens
                wait_s = deficit / self.refill_rate if self.refill_rate > 0 else 1.0
                logger.debug(f"Rate limited, waiting {wait_s:.2f}s")
                await asyncio.sleep(wait_s)


class RateLimiter:
    """
    Requests-per-minute limiter shared by an inference client.

    Attributes:
        rpm_bucket: Token bucket for request rate limiting
    """

    def __init__(self, max_rpm: Optional[int] = None):
        """
        Initialize rate limiter.

        Args:
            max_rpm: Maximum requests per minute (defaults to settings)
        """
        from content_trust.config.settings import settings

        rpm = max_rpm or settings.max_rpm
        self.rpm_bucket = TokenBucket(capacity=rpm, refill_rate=rpm / 60.0)
        logger.info(f"RateLimiter initialized: {rpm} RPM")

    async def wait(self) -> None:
        """Block until one request may proceed."""
        await self.rpm_bucket.acquire(1)
