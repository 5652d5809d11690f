"""velero-perf CLI application -- Typer-based operator interface.

Provides commands for monitoring a running backup or restore, analyzing
the resulting performance logs, and running end-to-end backup/restore
benchmarks.  Human-readable output goes to *stderr* via Rich; log files go
to the output directory and ``--json`` emits the final record on *stdout*
so that pipelines can compose cleanly.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from perf_cli.display import display_analysis, display_summary, display_tick
from perf_engine.analysis import analyze_directory
from perf_engine.config import load_settings
from perf_engine.errors import (
    AnalysisError,
    ConfigError,
    DependencyMissingError,
    JobNotFoundError,
)
from perf_engine.models.job import JobKind
from perf_engine.models.sample import DegradationThresholds, SessionSummary
from perf_engine.monitor import MonitorOptions, ProgressMonitor, create_monitor, summary_log_path

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="velero-perf",
    help="Velero backup/restore performance monitoring and analysis.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console(stderr=True)

# Register the benchmark commands.
from perf_cli.commands.benchmark import backup_command, restore_command  # noqa: E402

app.command(name="backup")(backup_command)
app.command(name="restore")(restore_command)

# Mutable global option populated by the Typer callback.
_json_output: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit the final summary as JSON to stdout in addition to the log files.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output  # noqa: PLW0603
    _json_output = json_mode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def fail(message: str) -> NoReturn:
    """Print a one-line diagnostic and exit with code 1."""
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)


def run_monitor(monitor: ProgressMonitor) -> SessionSummary:
    """Run *monitor* to completion, mapping fatal errors to exit code 1.

    An observed Failed/PartiallyFailed job is a successful monitoring
    session and returns normally.
    """
    try:
        summary = monitor.run()
    except (JobNotFoundError, DependencyMissingError) as exc:
        fail(str(exc))
    except KeyboardInterrupt:
        console.print("\n[yellow]Monitoring stopped. The Velero job continues running.[/yellow]")
        raise typer.Exit(code=130) from None

    display_summary(console, summary, summary_log_path(monitor.options.output_dir, summary.job.name))
    if _json_output:
        typer.echo(summary.model_dump_json(indent=2))
    return summary


def build_monitor(options: MonitorOptions) -> ProgressMonitor:
    """Create a kubectl-backed monitor that prints a live status line per tick."""
    settings = load_settings()
    try:
        return create_monitor(options, settings, on_tick=lambda sample, usage: display_tick(console, sample, usage))
    except DependencyMissingError as exc:
        fail(str(exc))


# ---------------------------------------------------------------------------
# monitor
# ---------------------------------------------------------------------------


@app.command()
def monitor(
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Name of the Velero backup or restore to monitor (required).",
    ),
    interval: int | None = typer.Option(
        None,
        "--interval",
        "-i",
        help="Monitoring interval in seconds (default: 10).",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-d",
        help="Directory for output logs (default: ./backup-performance-logs).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Echo debug-level log lines to the console.",
    ),
    namespace: str | None = typer.Option(
        None,
        "--namespace",
        help="Namespace Velero is installed in (default: openshift-adp).",
    ),
    kind: JobKind = typer.Option(
        JobKind.BACKUP,
        "--kind",
        "-k",
        help="Whether the job is a backup or a restore.",
        case_sensitive=False,
    ),
    item_mark: int | None = typer.Option(
        None,
        "--item-mark",
        help="Only flag degradation past this many items (default: 5000).",
    ),
    rate_threshold: float | None = typer.Option(
        None,
        "--rate-threshold",
        help="Flag degradation below this rate in objects/second (default: 5).",
    ),
) -> None:
    """Monitor a Velero backup or restore until it finishes.

    Examples::

        velero-perf monitor -n perf-test-150k
        velero-perf monitor -n perf-test-v1-11-1 -i 5 -v
        velero-perf monitor -n restore-perf-test --kind restore
    """
    settings = load_settings()
    try:
        options = MonitorOptions.build(
            settings,
            job_name=name,
            namespace=namespace,
            kind=kind,
            poll_interval_seconds=interval,
            output_dir=output_dir,
            verbose=verbose,
            item_mark=item_mark,
            low_rate=rate_threshold,
        )
    except ConfigError as exc:
        fail(str(exc))

    run_monitor(build_monitor(options))


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    log_dir: Path | None = typer.Option(
        None,
        "--log-dir",
        "-d",
        help="Directory containing performance logs (required).",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Specific job to analyze (default: every log in the directory).",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Output directory for analysis results (default: ./performance-analysis).",
    ),
    item_mark: int | None = typer.Option(
        None,
        "--item-mark",
        help="Slow periods are only counted past this many items (default: 5000).",
    ),
    rate_threshold: float | None = typer.Option(
        None,
        "--rate-threshold",
        help="Samples below this rate in objects/second are slow (default: 5).",
    ),
) -> None:
    """Analyze performance logs and write per-job reports and CSV data.

    Examples::

        velero-perf analyze -d ./backup-performance-logs
        velero-perf analyze -d ./backup-performance-logs -n performance-test-113k-objects
    """
    settings = load_settings()
    if log_dir is None:
        fail("Log directory is required")

    try:
        thresholds = DegradationThresholds(
            item_mark=settings.degradation_item_mark if item_mark is None else item_mark,
            low_rate=settings.degradation_rate_threshold if rate_threshold is None else rate_threshold,
        )
    except ValueError as exc:
        fail(f"Invalid threshold: {exc}")

    destination = output_dir or settings.analysis_output_dir
    try:
        analyses = analyze_directory(
            log_dir,
            destination,
            job_name=name,
            thresholds=thresholds,
            precision=settings.rate_precision,
        )
    except AnalysisError as exc:
        fail(str(exc))

    display_analysis(console, analyses)
    console.print(f"[green]Performance analysis completed![/green] Reports in: {destination}")
    if _json_output:
        typer.echo("[" + ",".join(a.model_dump_json() for a in analyses) + "]")
