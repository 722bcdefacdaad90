# ABOUTME: Item-level retry policy built on the tenacity library
# ABOUTME: Capped exponential backoff; security violations and validation failures stop immediately

from collections.abc import Awaitable, Callable
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from zenless_harvest.errors import ExtractionError, FileSystemError, NetworkError, SecurityError
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)


def compute_backoff_ms(attempt: int, base_delay_ms: int, cap_ms: int) -> int:
    """Delay before the attempt after ``attempt`` failed: ``min(base * 2^(attempt-1), cap)``."""
    if attempt < 1:
        raise ValueError("attempt numbers start at 1")
    return min(base_delay_ms * 2 ** (attempt - 1), cap_ms)


def is_retryable(error: BaseException, retry_extraction_errors: bool = True) -> bool:
    """Whether another attempt could change the outcome of ``error``."""
    if isinstance(error, SecurityError):
        return False
    if isinstance(error, ExtractionError):
        return retry_extraction_errors
    return isinstance(error, NetworkError | FileSystemError)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.warning(
        "Attempt failed, retrying",
        attempt=retry_state.attempt_number,
        delay_seconds=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
        error=str(error) if error else None,
        error_type=type(error).__name__ if error else None,
    )


def item_retrying(
    retry_attempts: int,
    base_delay_ms: int,
    cap_ms: int,
    retry_extraction_errors: bool = True,
    sleep: Callable[[float], Awaitable[Any]] | None = None,
) -> AsyncRetrying:
    """Build the retry controller for one item.

    Args:
        retry_attempts: Retries after the first attempt
        base_delay_ms: Delay after the first failure
        cap_ms: Upper bound of any single delay
        retry_extraction_errors: Retry payloads that lacked required structure
        sleep: Replacement for ``asyncio.sleep`` (tests)

    Returns:
        An ``AsyncRetrying`` that re-raises the last error once attempts run out
    """
    kwargs: dict[str, Any] = {
        "stop": stop_after_attempt(retry_attempts + 1),
        "wait": wait_exponential(multiplier=base_delay_ms / 1000, max=cap_ms / 1000),
        "retry": retry_if_exception(lambda e: is_retryable(e, retry_extraction_errors)),
        "before_sleep": _log_before_sleep,
        "reraise": True,
    }
    if sleep is not None:
        kwargs["sleep"] = sleep
    return AsyncRetrying(**kwargs)
