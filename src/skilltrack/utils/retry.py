"""Retry helper for outbound network calls.

Only errors whose message looks like a network failure are retried; anything
else propagates on the first attempt.

Usage:
    from skilltrack.utils.retry import retry_operation

    retry_operation(lambda: smtp_send(message))
"""

from __future__ import annotations

import random
import re
import time
from typing import Callable, TypeVar

import structlog

from skilltrack.core.errors import (
    AuthError,
    PermissionDeniedError,
    ServiceUnavailableError,
    SkillTrackError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Defaults (seconds)
MAX_RETRIES = 5
INITIAL_DELAY = 1.0
MAX_DELAY = 10.0
JITTER = 0.1

# Substrings (case-insensitive) that classify an error as transient
NETWORK_ERRORS = (
    "Failed to fetch",
    "NetworkError",
    "Network request failed",
    "Network Error",
    "rate limit",
    "socket hang up",
    "connection refused",
    "network timeout",
)

CONNECTION_ERROR_MESSAGE = (
    "Connection error. Please check your internet connection and try again."
)
RETRY_EXHAUSTED_MESSAGE = (
    "Operation failed after multiple retries. Please check your connection and try again."
)
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
PERMISSION_DENIED_MESSAGE = "You do not have permission to perform this action."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

_PREFIX_ERROR = re.compile(r"^error:", re.IGNORECASE)
_PREFIX_WORD = re.compile(r"^\w+:")


class RetryExhaustedError(ServiceUnavailableError):
    """Raised when a network operation keeps failing after every retry."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(RETRY_EXHAUSTED_MESSAGE)


def is_network_error(error: BaseException | None) -> bool:
    """Check if an error message matches a known network failure."""
    if not isinstance(error, Exception):
        return False
    message = str(error).lower()
    return any(pattern.lower() in message for pattern in NETWORK_ERRORS)


def retry_operation(
    operation: Callable[[], T],
    max_retries: int = MAX_RETRIES,
    initial_delay: float = INITIAL_DELAY,
    max_delay: float = MAX_DELAY,
    jitter: float = JITTER,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation`` with exponential backoff on network errors.

    Delay before each retry is ``min(previous * 1.5 + jitter, max_delay)``,
    so delays never decrease.

    Args:
        operation: Zero-argument callable to run
        max_retries: Total attempts before giving up
        initial_delay: Base delay in seconds
        max_delay: Upper bound for a single delay
        jitter: Upper bound of the random amount added to each delay
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever ``operation`` returns

    Raises:
        RetryExhaustedError: If every attempt failed with a network error
        Exception: The original error if it is not a network error
    """
    delay = initial_delay

    for attempt in range(max_retries):
        try:
            return operation()
        except Exception as e:
            if not is_network_error(e):
                raise

            if attempt == max_retries - 1:
                logger.error(
                    "retry.exhausted",
                    attempts=max_retries,
                    error=str(e),
                )
                raise RetryExhaustedError(max_retries) from e

            delay = min(delay * 1.5 + random.random() * jitter, max_delay)
            logger.warning(
                "retry.attempt_failed",
                attempt=attempt + 1,
                max_retries=max_retries,
                delay=round(delay, 3),
                error=str(e),
            )
            sleep(delay)

    raise RetryExhaustedError(max_retries)


def format_error_message(error: BaseException | None) -> str:
    """Turn an error into a message suitable for display."""
    if not isinstance(error, Exception):
        return UNEXPECTED_ERROR_MESSAGE
    if is_network_error(error):
        return CONNECTION_ERROR_MESSAGE
    message = _PREFIX_ERROR.sub("", str(error))
    message = _PREFIX_WORD.sub("", message)
    return message.strip()


def translate_backend_error(error: BaseException | None) -> Exception:
    """Map a low-level store or transport error to a domain error.

    Returns the exception to raise; the original is returned unchanged when
    no translation applies.
    """
    if not isinstance(error, Exception):
        return SkillTrackError(UNEXPECTED_ERROR_MESSAGE)
    if is_network_error(error):
        return ServiceUnavailableError(CONNECTION_ERROR_MESSAGE)
    message = str(error)
    if "JWT" in message or "session expired" in message.lower():
        return AuthError(SESSION_EXPIRED_MESSAGE)
    if "permission denied" in message.lower():
        return PermissionDeniedError(PERMISSION_DENIED_MESSAGE)
    return error
