# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Test double emulating a rate-limited RapidAPI endpoint.

Provides ``StubServer`` (a Falcon WSGI app that checks the API key and
counts calls per path), ``ScriptedProcessor`` for scripting per-path
response sequences, ``make_stub_client`` for in-process testing through
``httpx.WSGITransport``, and ``serve_stub`` for running the stub on a real
socket with ``waitress`` when timeouts must be exercised.

Usage::

    stub = StubServer("1234", ScriptedProcessor({"/retry": [(429, "slow down!"), (200, "OK")]}))
    client = RapidApiClient("", "1234", url=STUB_URL, client=make_stub_client(stub))
    assert client.call("/retry") == b"OK"
    assert stub.calls("/retry") == 2

"""

from __future__ import annotations

import contextlib
import logging
import re
import threading
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

import falcon
import httpx
import waitress
from waitress import wasyncore

from ._errors import KEY_HEADER

__all__ = [
    "STUB_URL",
    "Processor",
    "ScriptedProcessor",
    "StubServer",
    "make_stub_client",
    "not_found",
    "serve_stub",
]

_logger = logging.getLogger("rapidapi_client.testing")

STUB_URL = "http://stub.test"
"""Base URL to use with ``make_stub_client`` (the host is never resolved)."""

Processor = Callable[[falcon.Request, falcon.Response], None]
"""Response generator for authenticated requests on normal paths."""

_POLL_INTERVAL = 0.05


def _reply(resp: falcon.Response, status: int, text: str) -> None:
    resp.status = falcon.code_to_http_status(status)
    resp.content_type = falcon.MEDIA_TEXT
    resp.text = text


def not_found(req: falcon.Request, resp: falcon.Response) -> None:
    """Answer every request with ``404 Not Found``."""
    _reply(resp, 404, "Page not found")


class ScriptedProcessor:
    """Processor replaying a scripted sequence of replies per path.

    Each path maps to a list of ``(status, body)`` replies served in order;
    the last reply repeats once the list is exhausted.  Unknown paths get
    ``404 Not Found``.  Progress is tracked per instance, so each test can
    use its own script.
    """

    def __init__(self, routes: Mapping[str, Sequence[tuple[int, str]]]) -> None:
        """Initialize with a ``path -> [(status, body), ...]`` mapping.

        Raises:
            ValueError: If a path has no replies.

        """
        for path, replies in routes.items():
            if not replies:
                raise ValueError(f"no replies scripted for {path!r}")
        self._routes = {path: list(replies) for path, replies in routes.items()}
        self._served: dict[str, int] = {}
        self._lock = threading.Lock()

    def __call__(self, req: falcon.Request, resp: falcon.Response) -> None:
        """Serve the next scripted reply for ``req.path``."""
        replies = self._routes.get(req.path)
        if replies is None:
            not_found(req, resp)
            return
        with self._lock:
            index = self._served.get(req.path, 0)
            self._served[req.path] = index + 1
        status, text = replies[min(index, len(replies) - 1)]
        _reply(resp, status, text)


class StubServer:
    """Emulates a RapidAPI endpoint.

    Requests without the expected ``x-rapidapi-key`` header are answered
    with ``403 Forbidden``.  Authenticated requests are counted per path and
    handed to *processor*, except for *slow_path*, which blocks until the
    request is cancelled (``408 Request Timeout``) or *slow_delay* seconds
    pass (``200 OK`` with an empty body).  A request counts as cancelled
    when the client disconnects (detected under ``waitress`` only) or when
    ``release()`` is called.
    """

    def __init__(
        self,
        api_key: str,
        processor: Processor | None = None,
        *,
        slow_path: str = "/timeout",
        slow_delay: float = 60.0,
    ) -> None:
        """Initialize the stub.

        Args:
            api_key: Key expected in the ``x-rapidapi-key`` header.
            processor: Response generator for normal paths (default: 404).
            slow_path: Path that blocks instead of calling *processor*.
            slow_delay: Seconds *slow_path* blocks when not cancelled.

        """
        self.api_key = api_key
        self.processor = processor or not_found
        self.slow_path = slow_path
        self.slow_delay = slow_delay
        self._called: dict[str, int] = {}
        self._lock = threading.Lock()
        self._released = threading.Event()
        self._app: falcon.App[falcon.Request, falcon.Response] | None = None

    @property
    def app(self) -> falcon.App[falcon.Request, falcon.Response]:
        """Return the Falcon WSGI app routing every path to ``handle``."""
        if self._app is None:
            app = falcon.App()
            app.add_sink(self.handle, prefix=re.compile("/"))
            self._app = app
        return self._app

    @property
    def called(self) -> dict[str, int]:
        """Return a snapshot of the per-path call counters."""
        with self._lock:
            return dict(self._called)

    def calls(self, path: str) -> int:
        """Return the number of authenticated requests received on *path*."""
        with self._lock:
            return self._called.get(path, 0)

    def release(self) -> None:
        """Cancel every request blocked on the slow path, now and later."""
        self._released.set()

    def handle(self, req: falcon.Request, resp: falcon.Response, **kwargs: Any) -> None:
        """Authenticate, count, then dispatch the request."""
        if req.get_header(KEY_HEADER) != self.api_key:
            _reply(resp, 403, "Forbidden")
            return

        self._count(req.path)

        if req.path != self.slow_path:
            self.processor(req, resp)
            return
        self._block(req, resp)

    def _count(self, path: str) -> None:
        with self._lock:
            self._called[path] = self._called.get(path, 0) + 1

    def _block(self, req: falcon.Request, resp: falcon.Response) -> None:
        client_disconnected: Callable[[], bool] = req.env.get("waitress.client_disconnected", lambda: False)
        deadline = time.monotonic() + self.slow_delay
        while (remaining := deadline - time.monotonic()) > 0:
            if self._released.wait(min(remaining, _POLL_INTERVAL)) or client_disconnected():
                _logger.debug("Request on %s cancelled", req.path)
                _reply(resp, 408, "request cancelled")
                return
        _reply(resp, 200, "")


def make_stub_client(stub: StubServer, **kwargs: Any) -> httpx.Client:
    """Create an ``httpx.Client`` that calls *stub* in-process.

    No socket is opened: requests go through ``httpx.WSGITransport``, so
    client timeouts are not enforced.  Use ``serve_stub`` to test those.

    Args:
        stub: The stub to call.
        **kwargs: Passed to ``httpx.Client``.

    Returns:
        A client to pass to ``RapidApiClient`` together with ``url=STUB_URL``.

    """
    return httpx.Client(transport=httpx.WSGITransport(app=stub.app), **kwargs)


@contextlib.contextmanager
def serve_stub(stub: StubServer, *, host: str = "127.0.0.1", port: int = 0) -> Iterator[str]:
    """Serve *stub* with ``waitress`` on a background thread.

    On exit, requests blocked on the slow path are released and the server
    is shut down.

    Args:
        stub: The stub to serve.
        host: Interface to bind.
        port: Port to bind; ``0`` picks a free one.

    Yields:
        The base URL of the running server, e.g. ``"http://127.0.0.1:54321"``.

    """
    # channel_request_lookahead lets waitress report client disconnects to the app.
    server: Any = waitress.create_server(stub.app, host=host, port=port, channel_request_lookahead=1)
    stopping = threading.Event()

    def run() -> None:
        try:
            server.run()
        except (OSError, ValueError):
            # Sockets closed under the event loop while shutting down.
            if not stopping.is_set():
                raise

    thread = threading.Thread(target=run, daemon=True, name="rapidapi_client.stub")
    thread.start()
    _logger.debug("Stub server listening on %s:%d", host, server.effective_port)
    try:
        yield f"http://{host}:{server.effective_port}"
    finally:
        stopping.set()
        stub.release()
        # server.close() only closes the listener; the loop keeps running
        # while accepted channels remain in the socket map.  waitress has no
        # public stop call, so the channels are closed through the map.
        server.close()
        wasyncore.close_all(server._map, ignore_all=True)
        server.task_dispatcher.shutdown()
        thread.join(timeout=5)
