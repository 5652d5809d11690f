"""Velero CLI wrapper for starting backups and restores.

Jobs are created without ``--wait``; progress is observed afterwards by the
progress monitor through the Kubernetes API.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from perf_engine.errors import VeleroCommandError
from perf_engine.kube import validate_resource_name
from perf_engine.shell import CommandError, require_binary, run_command

logger = logging.getLogger(__name__)

_SELECTOR_RE = re.compile(r"^[A-Za-z0-9_./\-]+(=|!=|==)?[A-Za-z0-9_.\-]*(,[A-Za-z0-9_./\-]+(=|!=|==)?[A-Za-z0-9_.\-]*)*$")
_MAPPING_RE = re.compile(r"^[a-z0-9\-]+:[a-z0-9\-]+(,[a-z0-9\-]+:[a-z0-9\-]+)*$")


def timestamped_name(prefix: str, now: datetime | None = None) -> str:
    """Return ``<prefix>-YYYYmmdd-HHMMSS`` for a new job."""
    return f"{prefix}-{(now or datetime.now()).strftime('%Y%m%d-%H%M%S')}"


class VeleroClient:
    """Create Velero jobs through the ``velero`` binary."""

    def __init__(self, namespace: str, velero: str = "velero", timeout: int = 30) -> None:
        self.namespace = namespace
        self._velero = require_binary(velero)
        self._timeout = timeout

    def _run(self, args: list[str]) -> str:
        cmd = [self._velero, *args, "--namespace", self.namespace]
        try:
            return run_command(cmd, self._timeout).stdout
        except CommandError as exc:
            raise VeleroCommandError(str(exc)) from exc

    def check_server(self) -> None:
        """Verify the Velero server answers ``velero version``.

        Raises
        ------
        VeleroCommandError
            If the server is not accessible.
        """
        self._run(["version", f"--timeout={self._timeout}s"])

    def create_backup(
        self,
        name: str,
        *,
        selector: str | None = None,
        include_namespaces: list[str] | None = None,
    ) -> None:
        """Start a backup scoped by label *selector* or *include_namespaces*."""
        validate_resource_name(name)
        if not selector and not include_namespaces:
            raise ValueError("A label selector or at least one namespace is required")

        args = ["backup", "create", name]
        if selector:
            if not _SELECTOR_RE.match(selector):
                raise ValueError(f"Invalid label selector: {selector!r}")
            args += ["--selector", selector]
        if include_namespaces:
            for ns in include_namespaces:
                validate_resource_name(ns)
            args += ["--include-namespaces", ",".join(include_namespaces)]

        logger.info("Creating backup %s", name)
        self._run(args)

    def create_restore(
        self,
        name: str,
        backup_name: str,
        *,
        namespace_mappings: str | None = None,
    ) -> None:
        """Start a restore of *backup_name*, optionally remapping namespaces."""
        validate_resource_name(name)
        validate_resource_name(backup_name)

        args = ["restore", "create", name, "--from-backup", backup_name]
        if namespace_mappings:
            if not _MAPPING_RE.match(namespace_mappings):
                raise ValueError(f"Invalid namespace mappings: {namespace_mappings!r}")
            args += ["--namespace-mappings", namespace_mappings]

        logger.info("Creating restore %s from backup %s", name, backup_name)
        self._run(args)
