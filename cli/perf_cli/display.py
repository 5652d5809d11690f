"""Rich output formatting for the velero-perf CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from perf_engine.monitor.session_logs import format_number

if TYPE_CHECKING:
    from pathlib import Path

    from perf_engine.models.analysis import LogAnalysis
    from perf_engine.models.sample import ResourceUsage, SessionSummary, StatusSample
    from perf_engine.velero.benchmark import RateClass


# ---------------------------------------------------------------------------
# Colour mapping
# ---------------------------------------------------------------------------

_PHASE_COLOURS: dict[str, str] = {
    "Completed": "green",
    "Failed": "red",
    "PartiallyFailed": "dark_orange",
    "FailedValidation": "red",
    "InProgress": "yellow",
    "New": "dim",
    "Unknown": "dim red",
}

_RATE_COLOURS: dict[str, str] = {
    "SLOW": "red bold",
    "MODERATE": "yellow",
    "FAST": "green",
}


def _coloured_phase(phase: str) -> str:
    """Return a Rich markup string with the phase colour-coded."""
    colour = _PHASE_COLOURS.get(phase, "white")
    return f"[{colour}]{phase}[/{colour}]"


def _format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


# ---------------------------------------------------------------------------
# Live status line
# ---------------------------------------------------------------------------


def display_tick(console: Console, sample: StatusSample, usage: ResourceUsage) -> None:
    """Print the one-line status of a polling tick."""
    progress = f"{sample.items_processed}/{sample.total_items}" if sample.total_items else str(sample.items_processed)
    console.print(
        f"Status: {_coloured_phase(sample.phase.value)} | "
        f"Items: {progress} | "
        f"Rate: {format_number(sample.items_per_second)} obj/s | "
        f"Elapsed: {_format_duration(sample.elapsed_seconds)} | "
        f"[dim]CPU {usage.cpu} / Mem {usage.memory}[/dim]"
    )


# ---------------------------------------------------------------------------
# Session summary
# ---------------------------------------------------------------------------


def display_summary(console: Console, summary: SessionSummary, summary_log: Path | None = None) -> None:
    """Render the final session summary as a panel."""
    kind = summary.job.kind
    lines = [
        f"[bold]{kind.value.capitalize()}:[/bold]      {summary.job.name}",
        f"[bold]Final Status:[/bold] {_coloured_phase(summary.final_phase.value)}",
        f"[bold]Objects:[/bold]      {summary.items_processed} / {summary.total_items}",
        f"[bold]Duration:[/bold]     {format_number(summary.elapsed_seconds)}s",
        f"[bold]Average Rate:[/bold] {format_number(summary.average_rate)} obj/s",
    ]
    if summary.degradation is not None:
        event = summary.degradation
        lines.append(
            f"[yellow bold]Degradation:[/yellow bold]  detected at {event.items_processed} objects "
            f"({format_number(event.items_per_second)} obj/s)"
        )
    else:
        lines.append("[bold]Degradation:[/bold]  [green]none detected[/green]")
    if summary_log is not None:
        lines.append(f"[dim]Summary saved to {summary_log}[/dim]")

    border = "green" if summary.final_phase.value == "Completed" else "red"
    console.print(Panel("\n".join(lines), title="Performance Summary", border_style=border))


def display_rate_verdict(console: Console, rate_class: RateClass, average_rate: float) -> None:
    """Print the benchmark verdict for an average rate."""
    style = _RATE_COLOURS.get(rate_class.value, "white")
    console.print(
        f"Performance: [{style}]{rate_class.value}[/{style}] ({format_number(average_rate)} objects/second)"
    )


# ---------------------------------------------------------------------------
# Log analysis
# ---------------------------------------------------------------------------


def display_analysis(console: Console, analyses: list[LogAnalysis]) -> None:
    """Render one row per analyzed job."""
    if not analyses:
        console.print("[dim]No analyses to display.[/dim]")
        return

    table = Table(
        title="Performance Analysis",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("Job", style="bold")
    table.add_column("Status")
    table.add_column("Objects", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Avg Rate", justify="right")
    table.add_column("Drop", justify="right")
    table.add_column("Slow Periods", justify="center")

    for a in analyses:
        avg = "-" if a.average_rate is None else format_number(a.average_rate)
        drop = "-" if a.performance_drop_percent is None else f"{format_number(a.performance_drop_percent)}%"
        slow = f"[red]{len(a.slow_periods)}[/red]" if a.degradation_detected else "[green]0[/green]"
        table.add_row(
            a.job_name,
            _coloured_phase(a.final_status),
            str(a.items_processed),
            f"{format_number(a.elapsed_seconds)}s",
            avg,
            drop,
            slow,
        )

    console.print(table)
