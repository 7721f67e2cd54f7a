"""Retry with exponential backoff for upstream calls."""

import logging
import time
from typing import Callable, TypeVar

from .errors import AnalyzerError, ConfigurationError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_retryable(error: Exception) -> bool:
    """Decide whether another attempt could succeed.

    Configuration errors and analyzer errors not tagged retryable are final.
    Anything else (unexpected SDK or transport failures) gets another try.
    """
    if isinstance(error, ConfigurationError):
        return False
    if isinstance(error, AnalyzerError):
        return error.retryable
    return True


def retry_call(fn: Callable[[], T], retries: int = 3, delay: float = 1.0,
               sleep: Callable[[float], None] = time.sleep) -> T:
    """
    Call fn, retrying failures with exponentially increasing delay.

    Args:
        fn: Zero-argument operation to attempt
        retries: Retries after the first attempt (total attempts = retries + 1)
        delay: Seconds to wait before the first retry, doubled after each one
        sleep: Sleep function

    Returns:
        Whatever fn returns on its first successful attempt

    Raises:
        The original error when it is not retryable, otherwise
        RetryExhaustedError chained to the last failure.
    """
    attempts = max(retries, 0) + 1
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt == attempts:
                raise RetryExhaustedError(
                    f'Failed after {attempts} attempts: {e}',
                    attempts=attempts,
                    last_error=e
                ) from e

            logger.warning(
                'Attempt %d/%d failed (%s). Retrying in %.1fs.',
                attempt, attempts, e, delay
            )
            sleep(delay)
            delay *= 2
