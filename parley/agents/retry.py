"""Exponential backoff around the single answer call."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from parley.config.models.routing import RetryConfig
from parley.observability.logging import get_logger
from parley.providers.llm.base import TransientProviderError

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    TransientProviderError,
)


class RetryExhaustedError(Exception):
    """Raised when every attempt failed; wraps the last error."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class RetryPolicy:
    """Retries transient failures with capped, jittered exponential backoff.

    Delay before retry n (1-based) is
    min(base_delay * factor ** (n - 1), max_delay), then scaled by a
    random factor in [1 - jitter, 1]. Jitter only ever shortens a delay,
    so the cap holds.

    Non-retryable errors propagate immediately, unwrapped.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self._config.max_retries + 1

    def delay(self, retry: int) -> float:
        """Backoff before the given retry (1 for the first retry)."""
        cfg = self._config
        raw = min(cfg.base_delay * cfg.factor ** (retry - 1), cfg.max_delay)
        if cfg.jitter:
            raw *= self._rng.uniform(1.0 - cfg.jitter, 1.0)
        return raw

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        *,
        on_failure: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """Run `operation(attempt)` until it succeeds or attempts run out.

        Raises:
            RetryExhaustedError: If every attempt hit a retryable error
        """
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                wait = self.delay(attempt - 1)
                logger.debug("retry_backoff", attempt=attempt, delay=round(wait, 3))
                await self._sleep(wait)
            try:
                return await operation(attempt)
            except RETRYABLE_ERRORS as e:
                last_error = e
                if on_failure is not None:
                    on_failure(attempt, e)

        assert last_error is not None
        raise RetryExhaustedError(self.max_attempts, last_error)
