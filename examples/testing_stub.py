"""Testing a RapidAPI client without a running server.

``make_stub_client`` routes an ``httpx.Client`` to a ``StubServer`` through
``httpx.WSGITransport``, so retries, authentication and call counting can be
exercised in-process with zero network I/O.

Requires ``pip install rapidapi-client[stub]``

Run::

    python examples/testing_stub.py
"""

from __future__ import annotations

from rapidapi_client import Cancellation, DeadlineExceededError, HttpStatusError, RapidApiClient, RetryConfig
from rapidapi_client.testing import STUB_URL, ScriptedProcessor, StubServer, make_stub_client

# ---------------------------------------------------------------------------
# 1. Script the endpoint
# ---------------------------------------------------------------------------

_ROUTES = {
    "/quotes": [(200, '{"symbol": "ACME", "price": 42.0}')],
    "/busy": [(429, "slow down!"), (429, "slow down!"), (200, "finally")],
    "/throttled": [(429, "slow down!")],
}


def main() -> None:
    """Run the stub testing examples."""
    stub = StubServer("demo-key", ScriptedProcessor(_ROUTES))

    with make_stub_client(stub) as http_client:
        client = RapidApiClient("demo.p.rapidapi.com", "demo-key", url=STUB_URL, client=http_client)

        # --- Plain call -----------------------------------------------------
        body = client.call("/quotes")
        print(f"/quotes -> {body.decode()}")

        # --- Rate-limited twice, then accepted ------------------------------
        body = client.call("/busy")
        print(f"/busy -> {body.decode()} after {stub.calls('/busy')} attempts")

        # --- Unknown endpoint -----------------------------------------------
        try:
            client.call("/missing")
        except HttpStatusError as e:
            print(f"/missing -> {e}")

        # --- Deadline while being throttled ---------------------------------
        try:
            client.call("/throttled", Cancellation(timeout=0.5))
        except DeadlineExceededError as e:
            print(f"/throttled -> {e} after {stub.calls('/throttled')} attempts")

        # --- Wrong key ------------------------------------------------------
        intruder = RapidApiClient(
            "demo.p.rapidapi.com",
            "wrong-key",
            url=STUB_URL,
            client=http_client,
            retry=RetryConfig(max_attempts=3),
        )
        try:
            intruder.call("/quotes")
        except HttpStatusError as e:
            print(f"wrong key -> {e}")

    print("Done.")


if __name__ == "__main__":
    main()
