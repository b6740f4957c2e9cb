"""Retrying calls with exponential backoff."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

OnRetry = Callable[[int, BaseException], None]


@dataclass
class RetryConfig:
    """How often to retry and how long to wait between attempts (seconds)."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    on_retry: Optional[OnRetry] = None


class RetryError(Exception):
    """Raised when every attempt has failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"all retry attempts failed after {attempts} tries: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class RetryCancelled(Exception):
    """Raised when the wait between attempts is cancelled."""


def default_retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_delay=1.0, max_delay=30.0, multiplier=2.0)


def _log_download_retry(attempt: int, err: BaseException) -> None:
    log.warning("Download failed, retrying... (attempt %d): %s", attempt, err)


def _log_api_retry(attempt: int, err: BaseException) -> None:
    log.warning("API call failed, retrying... (attempt %d): %s", attempt, err)


def download_retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_delay=2.0,
        max_delay=60.0,
        multiplier=2.0,
        on_retry=_log_download_retry,
    )


def api_retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_delay=0.5,
        max_delay=10.0,
        multiplier=2.0,
        on_retry=_log_api_retry,
    )


def calculate_delay(
    attempt: int, initial_delay: float, max_delay: float, multiplier: float
) -> float:
    """Delay before the retry following ``attempt`` (0-based), capped at ``max_delay``."""
    delay = initial_delay * multiplier**attempt
    return min(delay, max_delay)


def retry_with_backoff(
    fn: Callable[[], T],
    config: Optional[RetryConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> Optional[T]:
    """Call ``fn`` until it succeeds, waiting longer after each failure.

    Returns what ``fn`` returns. Raises RetryError once all attempts fail,
    or RetryCancelled if ``cancel`` is set while waiting.
    """
    config = config or default_retry_config()
    for attempt in range(1, config.max_attempts + 1):
        try:
            return fn()
        except Exception as err:
            if attempt == config.max_attempts:
                log.error("All retry attempts exhausted after %d attempts: %s", attempt, err)
                raise RetryError(attempt, err) from err

            delay = calculate_delay(
                attempt - 1, config.initial_delay, config.max_delay, config.multiplier
            )
            if config.on_retry is not None:
                config.on_retry(attempt, err)
            log.debug(
                "Retrying after delay: attempt %d of %d, delay %.3fs",
                attempt,
                config.max_attempts,
                delay,
            )
            if cancel is None:
                threading.Event().wait(delay)
            elif cancel.wait(delay):
                raise RetryCancelled("retry cancelled") from err
    return None


def is_retryable(err: Optional[BaseException]) -> bool:
    """Every error is treated as retryable; no error is not."""
    return err is not None