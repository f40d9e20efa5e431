"""
Command-line interface for dnsscan.

Runs a scan of the built-in DNS provider catalog with live progress,
prints the ranking and exposes the last saved scan and system DNS info.
"""

import asyncio
import contextlib
import json as jsonlib
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich import box

from . import __version__
from .config import DEFAULT_INTENSITY, INTENSITY_PRESETS, ScanConfig
from .models import BenchmarkProgress
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .providers import PROVIDERS, find_provider_by_ip, list_providers, select_providers
from .scanner import CancellationToken, ScanScheduler
from .store import JSONResultStore
from .system import check_elevated_privileges, get_platform, get_system_dns_servers


logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def create_progress_callback(console: Console):
    """Create a rich progress bar and the callback that drives it."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )

    task_id = None

    def callback(event: BenchmarkProgress):
        nonlocal task_id
        if task_id is None:
            task_id = progress.add_task("Starting scan...", total=event.total_providers)

        if event.status.is_terminal:
            progress.update(
                task_id,
                description=f"{event.provider_name}: {event.status.value}",
                completed=event.completed_providers,
            )
        elif event.current_method is not None:
            progress.update(
                task_id,
                description=(
                    f"{event.provider_name}: {event.current_method.label} "
                    f"{event.current_test_index}/{event.total_tests_per_method}"
                ),
            )

    return progress, callback


@click.group()
@click.version_option(__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """
    dnsscan - Find the fastest, most stable public DNS provider.

    Benchmarks a fixed catalog of DNS providers with ICMP, DNS query
    and HTTPS probes, then ranks them by stability and latency.
    """
    configure_logging(verbose)


@main.command()
@click.option(
    "--intensity", "-i",
    type=click.Choice(list(INTENSITY_PRESETS.keys())),
    default=DEFAULT_INTENSITY,
    help="Scan depth: fast (3), normal (5) or deep (10) tests per method",
)
@click.option(
    "--tests", "-n",
    type=int,
    help="Tests per probe method (overrides --intensity)",
)
@click.option(
    "--concurrency", "-p",
    type=int,
    help="Providers tested simultaneously",
)
@click.option(
    "--provider", "-r",
    multiple=True,
    help="Only scan this provider (can specify multiple). Options: " + ", ".join(list_providers()),
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option(
    "--raw-csv",
    is_flag=True,
    help="Also write every probe sample to a .raw.csv file",
)
@click.option(
    "--no-save",
    is_flag=True,
    help="Do not record this scan as the last scan",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.option(
    "--json",
    is_flag=True,
    help="Output results as JSON to stdout",
)
def scan(
    intensity: str,
    tests: Optional[int],
    concurrency: Optional[int],
    provider: tuple,
    output: Optional[str],
    raw_csv: bool,
    no_save: bool,
    quiet: bool,
    json: bool,
):
    """
    Scan all DNS providers and rank them.

    Press Ctrl+C to stop dispatching new providers; providers already
    under test finish and the partial ranking is printed.

    Examples:

    \b
      # Normal scan of the whole catalog
      dnsscan scan

    \b
      # Quick comparison of three providers
      dnsscan scan -i fast -r cloudflare -r "google dns" -r quad9

    \b
      # Export results to CSV
      dnsscan scan -o results.csv --raw-csv
    """
    overrides = {}
    if tests is not None:
        overrides["tests_per_method"] = tests
    if concurrency is not None:
        overrides["concurrency"] = concurrency

    try:
        config = ScanConfig.from_intensity(intensity, **overrides)
        providers = select_providers(provider) if provider else list(PROVIDERS)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    scheduler = ScanScheduler(
        providers=providers,
        config=config,
        store=None if no_save else JSONResultStore(),
    )
    token = CancellationToken()

    console = Console(stderr=True)
    progress_ctx, progress_callback = None, None
    if not quiet and not json:
        progress_ctx, progress_callback = create_progress_callback(console)

    async def run_scan():
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, token.cancel)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable; Ctrl+C will abort the scan")
        try:
            return await scheduler.scan(
                progress_callback=progress_callback,
                cancel_token=token,
            )
        finally:
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(signal.SIGINT)

    if progress_ctx:
        with progress_ctx:
            report = asyncio.run(run_scan())
    else:
        report = asyncio.run(run_scan())

    if json:
        click.echo(JSONOutput.format(report))
    elif not quiet:
        RichConsoleOutput.print(report)

    if output:
        path = Path(output)
        if path.suffix.lower() == ".csv":
            CSVOutput.save(report, path, include_raw=raw_csv)
        else:
            if path.suffix.lower() != ".json":
                path = path.with_suffix(".json")
            JSONOutput.save(report, path)
        if not quiet:
            click.echo(f"Results saved to {path}", err=True)


@main.command("list-providers")
def list_providers_command():
    """List the DNS providers in the catalog."""
    console = Console()
    table = Table(
        title="DNS Providers",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Name", style="green")
    table.add_column("Primary", style="cyan")
    table.add_column("Secondary", style="cyan")

    for p in PROVIDERS:
        table.add_row(p.name, p.primary, p.secondary)

    console.print(table)


@main.command()
@click.option("--json", is_flag=True, help="Output the stored scan as JSON")
def last(json: bool):
    """Show the last saved scan."""
    stored = JSONResultStore().load_last()
    if stored is None:
        click.echo("No saved scan found. Run 'dnsscan scan' first.", err=True)
        sys.exit(1)

    if json:
        click.echo(jsonlib.dumps(stored.to_dict(), indent=2))
        return

    title = f"Last scan ({stored.timestamp:%Y-%m-%d %H:%M})"
    Console().print(RichConsoleOutput.results_table(stored.results, title=title))


@main.command()
def info():
    """Show system DNS configuration."""
    click.echo(f"Platform: {get_platform()}")
    click.echo(f"Elevated: {check_elevated_privileges()}")
    click.echo()

    servers = get_system_dns_servers()
    if servers:
        click.echo("System DNS Servers:")
        for server in servers:
            known = find_provider_by_ip(server)
            label = f" ({known.name})" if known else ""
            click.echo(f"  • {server}{label}")
    else:
        click.echo("Could not detect system DNS servers")


@main.command()
@click.option(
    "--port", "-p",
    type=int,
    default=5000,
    help="Port to run the API server on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind the server to",
)
def serve(port: int, host: str):
    """
    Run the scan API server.

    Serves the provider catalog and the last scan over HTTP and streams
    scan progress over a WebSocket at /ws.
    """
    try:
        from .server import run_server
    except ImportError as e:
        click.echo("Server dependencies not installed.", err=True)
        click.echo("Install with: pip install dnsscan[server]", err=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Serving dnsscan API on http://{host}:{port}")
    click.echo("Press Ctrl+C to stop the server")

    run_server(host=host, port=port)


if __name__ == "__main__":
    main()
