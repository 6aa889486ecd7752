"""Resilient HTTP CLI.

Usage:
    resilient-http get URL [OPTIONS]
    resilient-http batch FILE [OPTIONS]

Exit codes: 0=success, 1=request failure or partial batch failure.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from resilient_http.client import RequestClient
from resilient_http.core.errors import RequestError
from resilient_http.core.types import BatchResult
from resilient_http.observability.logger import setup_logging as setup_client_logging

app = typer.Typer(
    name="resilient-http",
    help="Rate-limited, retrying HTTP requests from the command line",
    add_completion=False,
)

console = Console()

RateLimitOpt = Annotated[
    float | None, typer.Option("--rate-limit", help="Maximum requests per second")
]
RetriesOpt = Annotated[int | None, typer.Option("--retries", help="Total attempts per request")]
RetryDelayOpt = Annotated[
    float | None, typer.Option("--retry-delay", help="Base backoff delay in seconds")
]
TimeoutOpt = Annotated[float | None, typer.Option("--timeout", help="Request timeout in seconds")]
QuietOpt = Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")]


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.WARNING if quiet else (logging.DEBUG if verbose else logging.INFO)
    setup_client_logging(
        level=level,
        handler=RichHandler(console=console, show_path=False),
        force=True,
    )


def _print_json(value: Any) -> None:
    console.print_json(json.dumps(value, default=str))


def _exit_invalid_options(error: ValidationError) -> NoReturn:
    """Report rejected option values and exit with code 1."""
    for detail in error.errors():
        name = ".".join(str(part) for part in detail["loc"]) or "options"
        console.print(f"[red]Invalid {escape(name)}: {escape(detail['msg'])}[/red]")
    raise typer.Exit(code=1)


def _summary_table(endpoints: list[str], batch: BatchResult[Any]) -> Table:
    table = Table(title="Batch Results")
    table.add_column("#", justify="right")
    table.add_column("Endpoint")
    table.add_column("Status")

    errors = {e.index: e.error for e in batch.errors}
    for index, endpoint in enumerate(endpoints):
        if index in errors:
            table.add_row(str(index), endpoint, f"[red]{escape(str(errors[index]))}[/red]")
        else:
            table.add_row(str(index), endpoint, "[green]ok[/green]")
    return table


@app.command()
def get(
    url: Annotated[str, typer.Argument(help="URL (or endpoint, with --base-url)")],
    base_url: Annotated[str | None, typer.Option("--base-url", help="Prefix for URL")] = None,
    rate_limit: RateLimitOpt = None,
    retries: RetriesOpt = None,
    retry_delay: RetryDelayOpt = None,
    timeout: TimeoutOpt = None,
    quiet: QuietOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Fetch a single endpoint and print its JSON body.

    Examples:
        resilient-http get https://api.example.com/users/1
        resilient-http get /users/1 --base-url https://api.example.com --retries 5
    """
    setup_logging(quiet=quiet, verbose=verbose)

    async def _run() -> Any:
        async with RequestClient(
            base_url,
            rate_limit=rate_limit,
            max_retries=retries,
            retry_delay=retry_delay,
            timeout=timeout,
        ) as client:
            return await client.get(url)

    try:
        result = asyncio.run(_run())
    except ValidationError as e:
        _exit_invalid_options(e)
    except RequestError as e:
        console.print(f"[red]Request failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    _print_json(result)


@app.command()
def batch(
    file: Annotated[Path, typer.Argument(help="File with one URL or endpoint per line")],
    base_url: Annotated[str | None, typer.Option("--base-url", help="Prefix for each line")] = None,
    concurrency: Annotated[
        int | None, typer.Option("--concurrency", "-c", help="Requests per window")
    ] = None,
    rate_limit: RateLimitOpt = None,
    retries: RetriesOpt = None,
    retry_delay: RetryDelayOpt = None,
    timeout: TimeoutOpt = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write results as JSON to this file")
    ] = None,
    quiet: QuietOpt = False,
    verbose: VerboseOpt = False,
) -> None:
    """Fetch every endpoint listed in FILE using windowed concurrency.

    Blank lines and lines starting with # are ignored.

    Examples:
        resilient-http batch urls.txt --concurrency 10 --rate-limit 5
    """
    setup_logging(quiet=quiet, verbose=verbose)

    if not file.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(code=1)

    endpoints = [
        line.strip()
        for line in file.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]

    async def _run() -> BatchResult[Any]:
        async with RequestClient(
            base_url,
            rate_limit=rate_limit,
            max_retries=retries,
            retry_delay=retry_delay,
            timeout=timeout,
            concurrency=concurrency,
        ) as client:
            result = await client.batch(endpoints, client.get)
            if not quiet:
                console.print(client.metrics.to_summary())
            return result

    try:
        result = asyncio.run(_run())
    except ValidationError as e:
        _exit_invalid_options(e)

    if not quiet:
        console.print(_summary_table(endpoints, result))
    console.print(f"Succeeded: {result.success_count}/{result.total}")

    if output is not None:
        output.write_text(
            json.dumps({"results": result.results, **result.to_dict()}, default=str, indent=2),
            encoding="utf-8",
        )

    if not result.ok:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
