"""Retry policy for remote calls."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from transkit.core.config import TranslatorConfig
from transkit.core.errors import TranslatorError, classify_error
from transkit.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


def is_retryable(error: BaseException) -> bool:
    """Check whether an error is worth another attempt."""
    return isinstance(error, TranslatorError) and error.retryable


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    delay = state.next_action.sleep if state.next_action else 0.0
    logger.warning(
        f"Retrying after error: {getattr(error, 'message', error)}",
        suggestion=getattr(error, "suggestion", None),
        attempt=state.attempt_number,
        max_attempts=state.retry_object.stop.max_attempt_number,
        delay=delay,
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    *,
    sleep: Optional[Sleep] = None,
) -> T:
    """Run ``operation`` with bounded retries and exponential backoff.

    Failures are classified first. Permanent errors are raised straight away;
    retryable errors are retried after ``min(base_delay * 2**i, max_delay)``
    seconds until ``max_retries`` attempts have been made, then the last
    attempt's error is raised.

    Args:
        operation: Zero-argument coroutine function to call
        max_retries: Total number of attempts
        base_delay: Delay after the first failed attempt, in seconds
        max_delay: Upper bound for any single delay, in seconds
        sleep: Coroutine used to wait between attempts (tests pass a fake)

    Returns:
        The operation's result

    Raises:
        TranslatorError: The classified error of the last attempt
    """

    async def attempt() -> T:
        try:
            return await operation()
        except Exception as e:
            error = classify_error(e)
            if error is e:
                raise
            raise error from e

    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        stop=stop_after_attempt(max(1, max_retries)),
        before_sleep=_log_retry,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
    return await retrying(attempt)


class RetryPolicy(BaseModel):
    """Retry settings bundled for reuse across calls."""

    max_retries: int = Field(default=3, gt=0)
    base_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=30.0, ge=0.0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_config(cls, config: TranslatorConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.retry_count,
            base_delay=config.retry_delay,
            max_delay=config.max_retry_delay,
        )

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        sleep: Optional[Sleep] = None,
    ) -> T:
        """Run ``operation`` under this policy."""
        return await with_retry(
            operation,
            self.max_retries,
            self.base_delay,
            self.max_delay,
            sleep=sleep,
        )
