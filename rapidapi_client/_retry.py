# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry logic for rate-limited API calls.

Provides ``RetryConfig`` and the retry loop used by ``RapidApiClient.call``.
Only ``429 Too Many Requests`` is retried; every other failure is raised by
the attempt callable and propagates unchanged.

Logger: ``rapidapi_client.retry``. Retry decisions are logged at DEBUG level.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from ._errors import TooManyRequestsError
from .cancel import Cancellation

_logger = logging.getLogger("rapidapi_client.retry")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retrying rate-limited calls.

    Attributes:
        max_attempts: Total number of requests sent per call, including the
            first one.
        initial_wait: Delay in seconds after the first 429 response.
        max_wait: Ceiling in seconds for the doubled delay.

    Raises:
        ValueError: If *max_attempts* < 1, a wait is negative, or
            *max_wait* < *initial_wait*.

    """

    max_attempts: int = 10
    initial_wait: float = 0.1
    max_wait: float = 5.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_wait < 0:
            raise ValueError(f"initial_wait must be >= 0, got {self.initial_wait}")
        if self.max_wait < self.initial_wait:
            raise ValueError(f"max_wait must be >= initial_wait ({self.initial_wait}), got {self.max_wait}")


def _backoff_delays(config: RetryConfig) -> Iterator[float]:
    """Yield successive backoff delays: doubling from ``initial_wait``, capped at ``max_wait``."""
    delay = config.initial_wait
    while True:
        yield delay
        delay = min(delay * 2, config.max_wait)


def _call_with_retry(
    attempt: Callable[[], bytes],
    *,
    config: RetryConfig,
    cancel: Cancellation,
    url: str,
) -> bytes:
    """Run *attempt* until it returns, retrying on ``TooManyRequestsError``.

    The cancellation signal is checked before every attempt and observed
    while waiting between attempts, so no request is sent after it fires.

    Args:
        attempt: Callable performing one request and returning the body.
        config: Retry configuration.
        cancel: Cancellation signal bounding the whole call.
        url: Request URL (for log messages only).

    Returns:
        The response body of the first successful attempt.

    Raises:
        TooManyRequestsError: If every attempt was rate limited.
        CallCancelledError: If the signal fired before the call completed.

    """
    delays = _backoff_delays(config)
    last_error: TooManyRequestsError | None = None

    for attempt_no in range(1, config.max_attempts + 1):
        cancel.raise_if_cancelled()
        try:
            return attempt()
        except TooManyRequestsError as exc:
            last_error = exc

        if attempt_no >= config.max_attempts:
            break

        delay = next(delays)
        _logger.debug(
            "HTTP 429 on GET %s (attempt %d/%d), retrying in %.2fs",
            url,
            attempt_no,
            config.max_attempts,
            delay,
            extra={"url": url, "attempt": attempt_no, "max_attempts": config.max_attempts, "delay": delay},
        )
        if cancel.wait(delay):
            err = cancel.error()
            assert err is not None
            raise err from last_error

    _logger.debug(
        "GET %s still rate limited after %d attempts",
        url,
        config.max_attempts,
        extra={"url": url, "attempt": config.max_attempts, "max_attempts": config.max_attempts},
    )
    # Attempts exhausted: last_error is set because max_attempts >= 1.
    assert last_error is not None
    raise last_error
