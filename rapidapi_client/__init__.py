# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Resilient client for APIs published through the RapidAPI gateway.

Sends authenticated GET requests with ``httpx`` and retries
``429 Too Many Requests`` responses with exponential backoff, bounded by a
retry ceiling and a caller-supplied :class:`Cancellation`.

The Falcon-based test double lives in :mod:`rapidapi_client.testing` and is
not imported here.
"""

import logging

from rapidapi_client._client import RapidApi, RapidApiClient
from rapidapi_client._errors import (
    HOST_HEADER,
    KEY_HEADER,
    CallCancelledError,
    DeadlineExceededError,
    HttpStatusError,
    RapidApiError,
    TooManyRequestsError,
)
from rapidapi_client._retry import RetryConfig
from rapidapi_client.cancel import Cancellation

__all__ = [
    # Client
    "RapidApi",
    "RapidApiClient",
    "RetryConfig",
    "Cancellation",
    # Errors
    "RapidApiError",
    "HttpStatusError",
    "TooManyRequestsError",
    "CallCancelledError",
    "DeadlineExceededError",
    # Headers
    "HOST_HEADER",
    "KEY_HEADER",
]

# Attach NullHandler to the package logger so library users don't get
# "No handler found" warnings.
logging.getLogger("rapidapi_client").addHandler(logging.NullHandler())
