# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Structured logging for API calls.

The client attaches call context to its records through ``extra``:

=================  ==============================================  =====================
Field              Meaning                                         Logged by
=================  ==============================================  =====================
``url``            Absolute request URL                            ``http``, ``retry``
``status``         HTTP status code of the response                ``http``
``attempt``        1-based attempt number                          ``retry``
``max_attempts``   Attempt ceiling from ``RetryConfig``            ``retry``
``delay``          Backoff before the next attempt, in seconds     ``retry``
=================  ==============================================  =====================

:class:`RapidApiJsonFormatter` renders these as top-level JSON keys.  This
module is **not** auto-imported by ``rapidapi_client``; import it
explicitly::

    from rapidapi_client.logging_utils import RapidApiJsonFormatter
"""

from __future__ import annotations

import json
import logging

from ._errors import KEY_HEADER

__all__ = ["CALL_FIELDS", "RapidApiJsonFormatter", "configure_logging"]

CALL_FIELDS: tuple[str, ...] = ("url", "status", "attempt", "max_attempts", "delay")
"""Call context fields, in the order they appear in JSON output."""

# Attributes present on every LogRecord; anything else came from ``extra``.
_DEFAULT_RECORD_ATTRS: frozenset[str] = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()) | {
    "message",
    "asctime",
}

_RESERVED_KEYS: frozenset[str] = frozenset({"timestamp", "level", "logger", "message", "exception"})

# Never written out, whatever a caller passes in ``extra``.
_SECRET_KEYS: frozenset[str] = frozenset({"api_key", KEY_HEADER, KEY_HEADER.replace("-", "_")})

_REDACTED = "***"


class RapidApiJsonFormatter(logging.Formatter):
    """JSON formatter for ``rapidapi_client`` records.

    ``timestamp``, ``level``, ``logger`` and ``message`` come first, then
    the call fields in ``CALL_FIELDS`` order (only those present), then
    any other ``extra`` fields.  ``delay`` is rounded to milliseconds.
    Extra fields named like the API key are redacted.  Values that are not
    JSON serializable are converted with ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        record.message = record.getMessage()
        obj: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
        }
        for name in CALL_FIELDS:
            if name in record.__dict__:
                obj[name] = record.__dict__[name]
        delay = record.__dict__.get("delay")
        if isinstance(delay, float):
            obj["delay"] = round(delay, 3)
        for k, v in record.__dict__.items():
            if k in _DEFAULT_RECORD_ATTRS or k in _RESERVED_KEYS or k in obj:
                continue
            obj[k] = _REDACTED if k.lower() in _SECRET_KEYS else v
        if record.exc_info and record.exc_info[1]:
            obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(obj, default=str)


def configure_logging(level: int | str = logging.WARNING, *, json_format: bool = False) -> logging.Handler:
    """Attach a stderr handler to the ``rapidapi_client`` logger.

    Args:
        level: Level for the ``rapidapi_client`` logger hierarchy.
        json_format: Use :class:`RapidApiJsonFormatter` instead of plain text.

    Returns:
        The installed handler, so callers can remove it again.

    Raises:
        ValueError: If *level* is not a known level name.

    """
    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(RapidApiJsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger = logging.getLogger("rapidapi_client")
    logger.setLevel(level)
    logger.addHandler(handler)
    return handler
