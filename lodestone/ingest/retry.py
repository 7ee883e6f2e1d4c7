"""Retry with exponential backoff for source fetches."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 0.2
DEFAULT_MAX_BACKOFF = 5.0

_TOO_MANY_REQUESTS = 429

T = TypeVar("T")


class HttpStatusError(Exception):
    """A source answered with a non-200 HTTP status."""

    def __init__(self, source: str, status: int, body: str) -> None:
        super().__init__(f"{source}: status {status}: {body}")
        self.source = source
        self.status = status
        self.body = body


class MaxRetriesExceeded(Exception):
    """Every attempt failed with a retryable error."""

    def __init__(self, source: str, last_error: BaseException | None) -> None:
        super().__init__(f"{source}: max retries exceeded: {last_error}")
        self.source = source
        self.last_error = last_error


@dataclass
class RetryConfig:
    """How often to try and how long to wait between attempts (seconds)."""

    max_retries: int
    initial_backoff: float
    max_backoff: float
    sleep: Callable[[float], None]


def is_retryable(error: BaseException | None) -> bool:
    """Server errors, 429 and transport failures are retried; other statuses are not."""
    if error is None:
        return False
    if isinstance(error, HttpStatusError):
        return error.status >= 500 or error.status == _TOO_MANY_REQUESTS
    return True


def default_retry_config(sleep: Callable[[float], None] | None = None) -> RetryConfig:
    return RetryConfig(
        max_retries=DEFAULT_MAX_RETRIES,
        initial_backoff=DEFAULT_INITIAL_BACKOFF,
        max_backoff=DEFAULT_MAX_BACKOFF,
        sleep=sleep or time.sleep,
    )


def retry_fetch(config: RetryConfig, source: str, fn: Callable[[], T]) -> T:
    """Call *fn* until it succeeds, a non-retryable error occurs, or attempts run out."""
    last_error: BaseException | None = None
    backoff = config.initial_backoff
    for attempt in range(config.max_retries):
        if attempt:
            config.sleep(backoff)
            backoff = min(backoff * 2, config.max_backoff)
        try:
            return fn()
        except Exception as exc:
            if not is_retryable(exc):
                raise
            last_error = exc
    raise MaxRetriesExceeded(source, last_error) from last_error