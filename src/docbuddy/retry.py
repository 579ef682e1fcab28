"""
Bounded exponential-backoff retry for backend calls.

Every outbound call to the telemetry backend goes through ``with_retry``.
Error classes are not distinguished: all failures are retried the same way,
rate-limit responses are only logged differently.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docbuddy.core.errors import BackendError, TransientBackendError

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if an error looks like a rate-limit response."""
    if isinstance(error, (TransientBackendError, BackendError)) and error.status_code == 429:
        return True
    message = str(error).lower()
    return "rate limit" in message or "429" in message


def _log_retry(operation: str | None, max_retries: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        event = "backend_rate_limited" if error and is_rate_limit_error(error) else "backend_retry"
        logger.warning(
            event,
            operation=operation,
            attempt=retry_state.attempt_number,
            max_retries=max_retries,
            delay=delay,
            error=str(error),
        )

    return before_sleep


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    *,
    operation: str | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run ``fn`` with bounded exponential backoff.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        max_retries: Total number of attempts (>= 1)
        base_delay: Delay in seconds before the second attempt; doubles each time
        operation: Label used in retry logs
        sleep: Awaitable sleep used between attempts

    Returns:
        The first successful result

    Raises:
        The last observed error once attempts are exhausted
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_retry(operation, max_retries),
        sleep=sleep,
        reraise=True,
    )
    return await retrying(fn)
