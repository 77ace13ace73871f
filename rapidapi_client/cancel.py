# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Caller-supplied cancellation signal for API calls.

A :class:`Cancellation` combines an optional deadline with an explicit
``cancel()`` switch.  One instance bounds a whole call, including the time
spent waiting between retries, and may be shared by several calls that
should be aborted together.

Usage::

    cancel = Cancellation(timeout=1.0)
    body = client.call("/quotes", cancel)

"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ._errors import CallCancelledError, DeadlineExceededError

__all__ = ["Cancellation"]


class Cancellation:
    """Deadline and/or explicit cancel switch observed by ``RapidApiClient.call``.

    Thread-safe: ``cancel()`` may be called from any thread while another
    thread is blocked in a call using this signal.
    """

    __slots__ = ("_callbacks", "_deadline", "_event", "_lock")

    def __init__(self, timeout: float | None = None) -> None:
        """Create a signal that fires after *timeout* seconds, or never.

        Raises:
            ValueError: If *timeout* is negative.

        """
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def __repr__(self) -> str:
        """Return a short description of the signal state."""
        return f"Cancellation(cancelled={self.cancelled}, remaining={self.remaining()})"

    def cancel(self) -> None:
        """Fire the signal and run registered callbacks.  Idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            fn()

    def add_callback(self, fn: Callable[[], None]) -> None:
        """Run *fn* when ``cancel()`` is called.

        *fn* runs at once, on the calling thread, if ``cancel()`` was
        already called.  Deadline expiry does not run callbacks.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def remove_callback(self, fn: Callable[[], None]) -> None:
        """Unregister *fn*; a no-op if it is not registered."""
        with self._lock:
            if fn in self._callbacks:
                self._callbacks.remove(fn)

    @property
    def deadline(self) -> float | None:
        """Return the ``time.monotonic()`` deadline, or ``None``."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once ``cancel()`` was called or the deadline passed."""
        return self.error() is not None

    def remaining(self) -> float | None:
        """Return seconds left until the deadline (never negative), or ``None``."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> CallCancelledError | None:
        """Return the error describing why the signal fired, or ``None``.

        An explicit ``cancel()`` takes precedence over an elapsed deadline.
        """
        if self._event.is_set():
            return CallCancelledError("call cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError("deadline exceeded")
        return None

    def raise_if_cancelled(self) -> None:
        """Raise the cancellation error if the signal has fired.

        Raises:
            CallCancelledError: After an explicit ``cancel()``.
            DeadlineExceededError: After the deadline elapsed.

        """
        err = self.error()
        if err is not None:
            raise err

    def wait(self, seconds: float) -> bool:
        """Block for up to *seconds*, returning early if the signal fires.

        Returns:
            ``True`` if the signal fired before *seconds* elapsed (or had
            already fired), ``False`` if the full interval passed.

        """
        end = time.monotonic() + seconds
        if self._deadline is not None:
            end = min(end, self._deadline)
        while (left := end - time.monotonic()) > 0:
            if self._event.wait(left):
                return True
        return self.cancelled
