# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for rapidapi-client.

Provides a ``get`` command that calls one endpoint and writes the raw
response body to stdout.

Usage::

    export RAPIDAPI_KEY=...
    rapidapi-client get --host covid-193.p.rapidapi.com /statistics
    rapidapi-client get --host covid-193.p.rapidapi.com --deadline 30 --log-level DEBUG /countries

"""

from __future__ import annotations

import logging
import sys
from enum import StrEnum
from typing import Annotated

import httpx
import typer

from rapidapi_client._client import RapidApiClient
from rapidapi_client._errors import RapidApiError
from rapidapi_client.cancel import Cancellation
from rapidapi_client.logging_utils import configure_logging


class LogFormat(StrEnum):
    """Log output format for CLI commands."""

    text = "text"
    json = "json"


app = typer.Typer(
    name="rapidapi-client",
    help="Call RapidAPI endpoints with automatic rate-limit retries.",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def _main() -> None:
    """Call RapidAPI endpoints with automatic rate-limit retries."""


@app.command()
def get(
    endpoint: Annotated[str, typer.Argument(help="Endpoint path, e.g. /statistics?country=usa")],
    host: Annotated[str, typer.Option("--host", "-H", envvar="RAPIDAPI_HOST", help="RapidAPI hostname")] = "",
    key: Annotated[str, typer.Option("--key", "-k", envvar="RAPIDAPI_KEY", help="RapidAPI key")] = "",
    url: Annotated[str | None, typer.Option("--url", "-u", help="Base URL replacing https://<host>")] = None,
    timeout: Annotated[float, typer.Option("--timeout", "-t", help="Per-request timeout in seconds")] = 30.0,
    deadline: Annotated[
        float | None, typer.Option("--deadline", "-d", help="Overall deadline in seconds, including retries")
    ] = None,
    log_level: Annotated[str, typer.Option("--log-level", help="Log level for rapidapi_client loggers")] = "WARNING",
    log_format: Annotated[LogFormat, typer.Option("--log-format", help="Log output format")] = LogFormat.text,
) -> None:
    """Call ENDPOINT and write the response body to stdout."""
    if not host and not url:
        raise typer.BadParameter("either --host or --url is required")
    if not key:
        raise typer.BadParameter("--key (or RAPIDAPI_KEY) is required")
    level = log_level.upper()
    if level not in logging.getLevelNamesMapping():
        raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")

    logger = logging.getLogger("rapidapi_client")
    old_level = logger.level
    handler = configure_logging(level, json_format=log_format == LogFormat.json)
    cancel = Cancellation(timeout=deadline) if deadline is not None else None

    try:
        with (
            httpx.Client(timeout=timeout) as http_client,
            RapidApiClient(host, key, url=url, client=http_client) as client,
        ):
            body = client.call(endpoint, cancel)
    except (RapidApiError, httpx.TransportError, httpx.InvalidURL) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    finally:
        logger.removeHandler(handler)
        logger.setLevel(old_level)

    sys.stdout.buffer.write(body)
    sys.stdout.flush()


def main() -> None:
    """Entry point for the ``rapidapi-client`` console script."""
    app()
