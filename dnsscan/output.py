"""
Output formatting for scan results.

Provides multiple output formats:
- JSON: Machine-readable full results
- CSV: Spreadsheet-compatible per-provider metrics or raw samples
- Human-readable: Rich terminal tables and summaries
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import TIMEOUT, UNREACHABLE, DNSBenchmarkResult, ProbeMethod, ScanReport


def _fmt_latency(value: float) -> str:
    if value >= UNREACHABLE:
        return "-"
    return f"{value:.1f}"


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def format(report: ScanReport, indent: int = 2) -> str:
        """
        Format a scan report as JSON.

        Args:
            report: ScanReport to format
            indent: JSON indentation level

        Returns:
            JSON string
        """
        best = report.best
        data = {
            "metadata": {
                "started_at": report.started_at.isoformat(),
                "completed_at": report.completed_at.isoformat(),
                "duration_seconds": round(report.duration_seconds, 3),
                "tests_per_method": report.tests_per_method,
                "state": report.state.value,
                "providers_scanned": len(report.results),
            },
            "best": best.provider_name if best else None,
            "results": [r.to_dict() for r in report.results],
        }
        return json.dumps(data, indent=indent)

    @staticmethod
    def save(report: ScanReport, path: Path) -> None:
        """Save a scan report to a JSON file."""
        with open(path, "w") as f:
            f.write(JSONOutput.format(report))


class CSVOutput:
    """CSV output formatter."""

    @staticmethod
    def format(report: ScanReport) -> str:
        """
        Format a scan report as CSV, one row per provider in rank order.

        Args:
            report: ScanReport to format

        Returns:
            CSV string
        """
        output = StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "rank",
            "provider",
            "primary",
            "secondary",
            "status",
            "icmp_avg_ms",
            "dns_avg_ms",
            "https_avg_ms",
            "avg_latency_ms",
            "jitter_ms",
            "packet_loss_pct",
            "stability_score",
            "latency_score",
            "performance_score",
        ])

        for rank, result in enumerate(report.results, start=1):
            writer.writerow([
                rank,
                result.provider.name,
                result.provider.primary,
                result.provider.secondary,
                result.status.value,
                result.icmp_average,
                result.dns_average,
                result.https_average,
                result.average_latency,
                result.jitter,
                result.packet_loss,
                result.stability_score,
                result.latency_score,
                result.performance_score,
            ])

        return output.getvalue()

    @staticmethod
    def format_raw(report: ScanReport) -> str:
        """
        Format every probe sample as CSV.

        Timeouts are written as an empty latency with timed_out=1.
        """
        output = StringIO()
        writer = csv.writer(output)

        writer.writerow(["provider", "method", "test_index", "latency_ms", "timed_out"])

        for result in report.results:
            for method in ProbeMethod:
                for index, sample in enumerate(result.samples_for(method), start=1):
                    timed_out = sample == TIMEOUT
                    writer.writerow([
                        result.provider.name,
                        method.value,
                        index,
                        "" if timed_out else sample,
                        int(timed_out),
                    ])

        return output.getvalue()

    @staticmethod
    def save(report: ScanReport, path: Path, include_raw: bool = False) -> None:
        """Save a scan report to CSV file(s)."""
        with open(path, "w", newline="") as f:
            f.write(CSVOutput.format(report))

        if include_raw:
            raw_path = path.with_suffix(".raw.csv")
            with open(raw_path, "w", newline="") as f:
                f.write(CSVOutput.format_raw(report))


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def results_table(results: list[DNSBenchmarkResult], title: str = "DNS Providers") -> Table:
        """Build the ranking table."""
        table = Table(
            title=title,
            box=box.ROUNDED,
            header_style="bold magenta",
        )

        table.add_column("#", justify="right", style="dim")
        table.add_column("Provider", style="cyan")
        table.add_column("Primary", style="dim")
        table.add_column("ICMP", justify="right")
        table.add_column("DNS", justify="right")
        table.add_column("HTTPS", justify="right")
        table.add_column("Avg (ms)", justify="right", style="green")
        table.add_column("Jitter", justify="right")
        table.add_column("Loss", justify="right", style="red")
        table.add_column("Stability", justify="right")
        table.add_column("Score", justify="right", style="bold")

        for rank, result in enumerate(results, start=1):
            style = None if result.is_reachable else "dim"
            table.add_row(
                str(rank),
                result.provider.name,
                result.provider.primary,
                _fmt_latency(result.icmp_average),
                _fmt_latency(result.dns_average),
                _fmt_latency(result.https_average),
                _fmt_latency(result.average_latency),
                f"{result.jitter:.1f}ms",
                f"{result.packet_loss:.1f}%",
                str(result.stability_score),
                str(result.performance_score),
                style=style,
            )

        return table

    @staticmethod
    def print(report: ScanReport, console: Optional[Console] = None) -> None:
        """Print a scan report using rich."""
        console = console or Console()

        console.print()
        console.print(Panel.fit(
            "[bold blue]DNS PROVIDER SCAN RESULTS[/bold blue]",
            border_style="blue",
        ))
        console.print()

        console.print(f"  [dim]Duration:[/dim] {report.duration_seconds:.1f}s | "
                      f"[dim]Tests per method:[/dim] {report.tests_per_method} | "
                      f"[dim]Providers:[/dim] {len(report.results)}")
        if report.aborted:
            console.print("  [yellow]Scan was cancelled; showing partial results[/yellow]")
        console.print()

        console.print(RichConsoleOutput.results_table(report.results))
        console.print()

        best = report.best
        if best:
            console.print(Panel(
                f"[bold green]BEST: {best.provider.name}[/bold green] "
                f"({best.provider.primary} / {best.provider.secondary})\n"
                f"Average Latency: {best.average_latency:.1f}ms | "
                f"Packet Loss: {best.packet_loss:.1f}% | "
                f"Score: {best.performance_score}",
                border_style="green",
            ))
        else:
            console.print(Panel(
                "[bold yellow]No provider was reachable[/bold yellow]",
                border_style="yellow",
            ))

        console.print()
