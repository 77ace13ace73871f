# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Exception hierarchy and shared header constants for rapidapi-client.

Transport failures are not wrapped: they surface as the ``httpx``
exceptions raised by the underlying client.
"""

from __future__ import annotations

from http import HTTPStatus

KEY_HEADER = "x-rapidapi-key"
HOST_HEADER = "x-rapidapi-host"


class RapidApiError(Exception):
    """Base class for errors raised by rapidapi-client."""


class HttpStatusError(RapidApiError):
    """Raised when the server answers with a terminal non-200 status.

    ``str(err)`` is the HTTP status line, e.g. ``"404 Not Found"``.

    Attributes:
        status_code: The HTTP status code.
        reason: The reason phrase sent by the server (or the standard one).

    """

    def __init__(self, status_code: int, reason: str = "") -> None:
        """Initialize with the status code and reason phrase."""
        if not reason:
            try:
                reason = HTTPStatus(status_code).phrase
            except ValueError:
                reason = ""
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{status_code} {reason}".rstrip())


class TooManyRequestsError(HttpStatusError):
    """Raised when the server keeps answering 429 until attempts run out."""

    def __init__(self, reason: str = "") -> None:
        """Initialize with the reason phrase of the last 429 response."""
        super().__init__(int(HTTPStatus.TOO_MANY_REQUESTS), reason)


class CallCancelledError(RapidApiError):
    """Raised when the caller's cancellation signal fires during a call."""


class DeadlineExceededError(CallCancelledError):
    """Raised when the caller's deadline elapses during a call."""
