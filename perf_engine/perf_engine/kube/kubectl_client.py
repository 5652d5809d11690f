"""Thin kubectl client for querying Velero jobs and server pod resources.

Job status is read from the custom resource's JSON representation
(``kubectl get backup NAME -o json``) so that parsing does not depend on
the human-readable layout of ``velero describe``.  Resource usage comes
from ``kubectl top``, which only offers columnar output.
"""

from __future__ import annotations

import json
import logging
import re

from perf_engine.errors import JobNotFoundError, TransientQueryError
from perf_engine.models.job import JobHandle, JobStatus
from perf_engine.models.sample import RESOURCE_PLACEHOLDER, ResourceUsage
from perf_engine.shell import CommandError, run_command

logger = logging.getLogger(__name__)

# RFC 1123 subdomain, the naming rule for Velero backups and restores.
_K8S_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9.]{0,251}[a-z0-9])?$")

_NOT_FOUND_MARKERS = ("NotFound", "not found")


def validate_resource_name(name: str) -> None:
    """Reject names kubectl would refuse, before they reach a subprocess.

    Raises
    ------
    ValueError
        If *name* is empty or not a valid Kubernetes resource name.
    """
    if not name:
        raise ValueError("Resource name cannot be empty")
    if not _K8S_NAME_RE.match(name):
        raise ValueError(f"Invalid Kubernetes resource name: {name!r}")


def _is_not_found(exc: CommandError) -> bool:
    return any(marker in exc.stderr for marker in _NOT_FOUND_MARKERS)


class KubectlJobStore:
    """:class:`JobStatusSource` backed by ``kubectl get <kind> -o json``."""

    def __init__(self, kubectl: str = "kubectl", timeout: int = 30) -> None:
        self._kubectl = kubectl
        self._timeout = timeout

    def get_status(self, handle: JobHandle) -> JobStatus:
        cmd = [
            self._kubectl,
            "get",
            handle.kind.resource,
            handle.name,
            "-n",
            handle.namespace,
            "-o",
            "json",
        ]
        try:
            result = run_command(cmd, self._timeout)
        except CommandError as exc:
            if _is_not_found(exc):
                raise JobNotFoundError(handle.kind.value, handle.name, handle.namespace) from exc
            raise TransientQueryError(str(exc)) from exc

        try:
            resource = json.loads(result.stdout)
            if not isinstance(resource, dict):
                raise ValueError("expected a JSON object")
            return JobStatus.from_resource(resource, handle.kind)
        except ValueError as exc:
            raise TransientQueryError(f"Unparseable {handle.kind.value} status for {handle.name}: {exc}") from exc


class KubectlResourceSource:
    """:class:`ResourceUsageSource` backed by ``kubectl top pod`` and ``kubectl get pods``."""

    def __init__(self, kubectl: str = "kubectl", timeout: int = 30) -> None:
        self._kubectl = kubectl
        self._timeout = timeout

    def get_usage(self, namespace: str, selector: str) -> ResourceUsage:
        cpu, memory = self._top(namespace, selector)
        pod_phase = self._pod_phase(namespace, selector)
        if cpu == RESOURCE_PLACEHOLDER and pod_phase == RESOURCE_PLACEHOLDER:
            raise TransientQueryError(f"No resource data for pods matching {selector!r} in {namespace}")
        return ResourceUsage(cpu=cpu, memory=memory, pod_phase=pod_phase)

    def _top(self, namespace: str, selector: str) -> tuple[str, str]:
        cmd = [self._kubectl, "top", "pod", "-n", namespace, "-l", selector, "--no-headers"]
        try:
            result = run_command(cmd, self._timeout)
        except CommandError as exc:
            # metrics-server is frequently absent on test clusters.
            logger.debug("kubectl top unavailable: %s", exc)
            return RESOURCE_PLACEHOLDER, RESOURCE_PLACEHOLDER

        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) >= 3:
                return parts[1], parts[2]
        return RESOURCE_PLACEHOLDER, RESOURCE_PLACEHOLDER

    def _pod_phase(self, namespace: str, selector: str) -> str:
        cmd = [self._kubectl, "get", "pods", "-n", namespace, "-l", selector, "-o", "json"]
        try:
            result = run_command(cmd, self._timeout)
            items = json.loads(result.stdout).get("items") or []
            phase = (items[0].get("status") or {}).get("phase") if items else None
        except (CommandError, ValueError, AttributeError, KeyError, TypeError) as exc:
            logger.debug("Pod phase unavailable: %s", exc)
            return RESOURCE_PLACEHOLDER

        return phase if isinstance(phase, str) and phase else RESOURCE_PLACEHOLDER
