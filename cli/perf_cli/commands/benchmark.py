"""``velero-perf backup`` / ``velero-perf restore`` -- end-to-end benchmarks.

Creates a Velero backup or restore through the ``velero`` CLI, follows it
with the progress monitor until it finishes, and classifies the average
processing rate as SLOW, MODERATE or FAST.  The monitor writes the same
log files as ``velero-perf monitor``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from perf_engine.config import Settings, load_settings
from perf_engine.errors import (
    ConfigError,
    DependencyMissingError,
    JobNotFoundError,
    VeleroCommandError,
)
from perf_engine.models.job import JobKind
from perf_engine.models.sample import SessionSummary
from perf_engine.monitor import MonitorOptions, ProgressMonitor
from perf_engine.velero import (
    VeleroClient,
    classify_with_settings,
    ensure_backup_completed,
    timestamped_name,
    wait_for_job,
)

console = Console(stderr=True)


def _prepare(
    settings: Settings,
    job_name: str,
    kind: JobKind,
    namespace: str | None,
    interval: int | None,
    output_dir: Path | None,
    verbose: bool,
) -> tuple[MonitorOptions, VeleroClient, ProgressMonitor]:
    """Validate options and build the velero client and monitor."""
    from perf_cli.app import build_monitor, fail

    try:
        options = MonitorOptions.build(
            settings,
            job_name=job_name,
            namespace=namespace,
            kind=kind,
            poll_interval_seconds=interval,
            output_dir=output_dir,
            verbose=verbose,
        )
    except ConfigError as exc:
        fail(str(exc))

    try:
        client = VeleroClient(options.namespace, settings.velero_binary, settings.query_timeout_seconds)
        console.print("Checking Velero server status...")
        client.check_server()
    except DependencyMissingError as exc:
        fail(f"{exc}. Install the Velero CLI first.")
    except VeleroCommandError as exc:
        fail(f"Velero server not accessible: {exc}")
    console.print("[green]✓[/green] Velero server is accessible")

    return options, client, build_monitor(options)


def _follow(monitor: ProgressMonitor, settings: Settings) -> SessionSummary:
    """Wait for the job to appear, monitor it, and print the rate verdict."""
    from perf_cli.app import fail, run_monitor
    from perf_cli.display import display_rate_verdict

    try:
        wait_for_job(monitor.job_store, monitor.options.handle)
    except JobNotFoundError as exc:
        fail(str(exc))

    summary = run_monitor(monitor)
    if summary.items_processed > 0 and summary.elapsed_seconds > 0:
        display_rate_verdict(console, classify_with_settings(summary.average_rate, settings), summary.average_rate)
    return summary


def backup_command(
    selector: str | None = typer.Option(
        None,
        "--selector",
        "-l",
        help="Label selector of the objects to back up (e.g. velero-test=performance).",
    ),
    include_namespaces: str | None = typer.Option(
        None,
        "--include-namespaces",
        help="Comma-separated namespaces to back up.",
    ),
    name_prefix: str = typer.Option(
        "perf-test",
        "--name-prefix",
        help="Prefix of the generated backup name.",
    ),
    interval: int | None = typer.Option(None, "--interval", "-i", help="Monitoring interval in seconds."),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-d", help="Directory for output logs."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo debug-level log lines."),
    namespace: str | None = typer.Option(None, "--namespace", help="Namespace Velero is installed in."),
) -> None:
    """Create a backup, monitor it to completion and rate its throughput.

    Examples::

        velero-perf backup --selector velero-test=performance
        velero-perf backup --include-namespaces velero-perf-test -i 5
    """
    from perf_cli.app import fail

    if not selector and not include_namespaces:
        fail("A --selector or --include-namespaces is required")

    settings = load_settings()
    backup_name = timestamped_name(name_prefix)
    _, client, monitor = _prepare(settings, backup_name, JobKind.BACKUP, namespace, interval, output_dir, verbose)

    namespaces = [ns.strip() for ns in include_namespaces.split(",") if ns.strip()] if include_namespaces else None
    try:
        client.create_backup(backup_name, selector=selector, include_namespaces=namespaces)
    except (ValueError, VeleroCommandError) as exc:
        fail(f"Backup creation failed: {exc}")
    console.print(f"Started backup [bold]{backup_name}[/bold]")

    _follow(monitor, settings)


def restore_command(
    from_backup: str | None = typer.Option(
        None,
        "--from-backup",
        "-b",
        help="Completed backup to restore from (required).",
    ),
    namespace_mappings: str | None = typer.Option(
        None,
        "--namespace-mappings",
        help="Namespace remapping, e.g. velero-perf-test:restored-ns.",
    ),
    interval: int | None = typer.Option(None, "--interval", "-i", help="Monitoring interval in seconds."),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-d", help="Directory for output logs."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo debug-level log lines."),
    namespace: str | None = typer.Option(None, "--namespace", help="Namespace Velero is installed in."),
) -> None:
    """Restore a completed backup, monitor it to completion and rate its throughput.

    Examples::

        velero-perf restore --from-backup perf-test-20250101-120000
        velero-perf restore -b perf-test-20250101-120000 --namespace-mappings velero-perf-test:perf-restore
    """
    from perf_cli.app import fail

    if not from_backup:
        fail("Backup name is required (--from-backup)")

    settings = load_settings()
    restore_name = timestamped_name(f"restore-{from_backup}")
    options, client, monitor = _prepare(
        settings, restore_name, JobKind.RESTORE, namespace, interval, output_dir, verbose
    )

    try:
        status = ensure_backup_completed(monitor.job_store, from_backup, options.namespace)
    except (JobNotFoundError, VeleroCommandError) as exc:
        fail(str(exc))
    console.print(f"[green]✓[/green] Backup '{from_backup}' is valid ({status.items_processed} items)")

    try:
        client.create_restore(restore_name, from_backup, namespace_mappings=namespace_mappings)
    except (ValueError, VeleroCommandError) as exc:
        fail(f"Restore creation failed: {exc}")
    console.print(f"Started restore [bold]{restore_name}[/bold]")

    _follow(monitor, settings)
