# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""RapidAPI client implementation using httpx.

Provides ``RapidApiClient``, which sends authenticated GET requests and
retries rate-limited ones, and the ``RapidApi`` protocol it implements.
"""

from __future__ import annotations

import functools
import logging
import threading
from concurrent.futures import Future
from http import HTTPStatus
from types import TracebackType
from typing import Protocol, Self

import httpx

from ._errors import HOST_HEADER, KEY_HEADER, DeadlineExceededError, HttpStatusError, TooManyRequestsError
from ._retry import RetryConfig, _call_with_retry
from .cancel import Cancellation

_logger = logging.getLogger("rapidapi_client.http")


class RapidApi(Protocol):
    """Interface for calling a RapidAPI endpoint."""

    def call(self, endpoint: str, cancel: Cancellation | None = None) -> bytes:
        """Call *endpoint* and return the response body."""
        ...


def _bounded_timeout(base: httpx.Timeout, remaining: float) -> httpx.Timeout:
    """Clamp every phase of *base* to the *remaining* seconds of a deadline.

    The bound applies to each phase separately, so a request that is slow
    in several phases can outlive the deadline in the worker thread.
    """

    def clamp(value: float | None) -> float:
        return remaining if value is None else min(value, remaining)

    return httpx.Timeout(
        connect=clamp(base.connect),
        read=clamp(base.read),
        write=clamp(base.write),
        pool=clamp(base.pool),
    )


class RapidApiClient:
    """Client for an API published through the RapidAPI gateway.

    Every request carries the ``x-rapidapi-key`` and ``x-rapidapi-host``
    headers.  Requests go to ``https://<hostname><endpoint>`` unless
    ``url`` is set, in which case ``url`` replaces the origin (for tests).

    ``429 Too Many Requests`` responses are retried with exponential
    backoff (see ``RetryConfig``).  Any other non-200 status raises
    ``HttpStatusError`` immediately; transport errors raised by ``httpx``
    propagate unchanged.

    A single instance may be used from several threads: each call keeps
    its own attempt counter and backoff delay.

    Usage::

        with RapidApiClient("weatherapi-com.p.rapidapi.com", api_key) as client:
            body = client.call("/current.json?q=London", Cancellation(timeout=10))

    """

    def __init__(
        self,
        hostname: str,
        api_key: str,
        *,
        url: str | None = None,
        client: httpx.Client | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            hostname: RapidAPI hostname of the API, e.g. ``"example.p.rapidapi.com"``.
            api_key: RapidAPI key sent with every request.
            url: Base URL overriding ``https://<hostname>``.
            client: ``httpx.Client`` used to send requests.  When omitted a
                client is created and closed by ``close()``.
            retry: Retry configuration (default ``RetryConfig()``).

        """
        self._hostname = hostname
        self._api_key = api_key
        self.url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client()
        self._retry = retry or RetryConfig()

    def __repr__(self) -> str:
        """Return a description of the client that omits the API key."""
        return f"RapidApiClient(hostname={self._hostname!r}, url={self.url!r})"

    @property
    def hostname(self) -> str:
        """Return the RapidAPI hostname."""
        return self._hostname

    @property
    def api_key(self) -> str:
        """Return the RapidAPI key."""
        return self._api_key

    @property
    def retry(self) -> RetryConfig:
        """Return the retry configuration."""
        return self._retry

    @property
    def http_client(self) -> httpx.Client:
        """Return the ``httpx.Client`` used to send requests."""
        return self._client

    def with_http_client(self, client: httpx.Client) -> Self:
        """Replace the ``httpx.Client`` used to send requests.

        The replaced client is closed if this instance created it; the new
        one remains owned by the caller.

        Returns:
            This client, for chaining.

        """
        if self._owns_client:
            self._client.close()
        self._client = client
        self._owns_client = False
        return self

    def make_url(self, endpoint: str) -> str:
        """Return the absolute URL for *endpoint*."""
        base_url = self.url if self.url else f"https://{self._hostname}"
        return base_url + endpoint

    def call(self, endpoint: str, cancel: Cancellation | None = None) -> bytes:
        """Call *endpoint* and return the full response body.

        Args:
            endpoint: Path (and query) appended to the base URL.
            cancel: Signal bounding the whole call, including requests in
                flight and backoff waits.  ``None`` means the call is never
                cancelled.

        Returns:
            The body of the first ``200 OK`` response.

        Raises:
            HttpStatusError: On a non-200, non-429 status.
            TooManyRequestsError: If every attempt was rate limited.
            CallCancelledError: If *cancel* was cancelled.
            DeadlineExceededError: If the deadline of *cancel* elapsed.
            httpx.TransportError: On connection, DNS, or client timeout errors.

        """
        url = self.make_url(endpoint)
        if cancel is None:
            # Nothing can fire the signal, so requests run on the calling thread.
            cancel = Cancellation()
            attempt = functools.partial(self._get, url, cancel)
        else:
            attempt = functools.partial(self._get_cancellable, url, cancel)
        return _call_with_retry(attempt, config=self._retry, cancel=cancel, url=url)

    def _get_cancellable(self, url: str, cancel: Cancellation) -> bytes:
        """Run ``_get`` on a worker thread and stop waiting when *cancel* fires.

        A blocking ``httpx`` request cannot be interrupted from another
        thread, so the request runs elsewhere and the caller stops waiting
        once *cancel* fires or its deadline passes.  An abandoned request
        finishes in the background (its timeouts are clamped to the
        deadline) and its outcome is discarded.
        """
        future: Future[bytes] = Future()
        done = threading.Event()
        future.add_done_callback(lambda _: done.set())

        def run() -> None:
            try:
                future.set_result(self._get(url, cancel))
            except BaseException as exc:
                future.set_exception(exc)

        cancel.add_callback(done.set)
        try:
            threading.Thread(target=run, daemon=True, name="rapidapi_client.get").start()
            while not done.wait(cancel.remaining()):
                if cancel.cancelled:
                    break
        finally:
            cancel.remove_callback(done.set)

        if future.done():
            return future.result()
        err = cancel.error()
        assert err is not None
        _logger.debug("GET %s abandoned: %s", url, err, extra={"url": url})
        raise err

    def _get(self, url: str, cancel: Cancellation) -> bytes:
        """Send one GET request and return the body of a ``200 OK`` response."""
        headers = {KEY_HEADER: self._api_key, HOST_HEADER: self._hostname}
        timeout = httpx.USE_CLIENT_DEFAULT
        deadline_bound = False
        remaining = cancel.remaining()
        if remaining is not None:
            base = self._client.timeout
            # Each phase gets the full remainder; the overall bound is
            # enforced by the caller in _get_cancellable.
            timeout = _bounded_timeout(base, remaining)
            deadline_bound = all(v is None or remaining <= v for v in (base.connect, base.read, base.write, base.pool))

        _logger.debug("GET %s", url, extra={"url": url})
        try:
            with self._client.stream("GET", url, headers=headers, timeout=timeout) as resp:
                _logger.debug("GET %s -> %d", url, resp.status_code, extra={"url": url, "status": resp.status_code})
                if resp.status_code == HTTPStatus.OK:
                    return self._read_body(resp, cancel)
                if resp.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                    raise TooManyRequestsError(resp.reason_phrase)
                raise HttpStatusError(resp.status_code, resp.reason_phrase)
        except httpx.TimeoutException as exc:
            err = cancel.error()
            if err is None and deadline_bound:
                err = DeadlineExceededError("deadline exceeded")
            if err is not None:
                raise err from exc
            raise

    @staticmethod
    def _read_body(resp: httpx.Response, cancel: Cancellation) -> bytes:
        """Read *resp* to completion, checking *cancel* between chunks."""
        chunks: list[bytes] = []
        for chunk in resp.iter_bytes():
            cancel.raise_if_cancelled()
            chunks.append(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        """Close the ``httpx.Client`` if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager, closing an owned ``httpx.Client``."""
        self.close()
