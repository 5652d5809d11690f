"""Error taxonomy for the performance tooling.

Only :class:`ConfigError`, :class:`DependencyMissingError` and
:class:`JobNotFoundError` terminate a monitoring session.
:class:`TransientQueryError` is raised by the query clients for a single
failed poll and is absorbed by the monitor into a placeholder sample.
"""

from __future__ import annotations


class PerfEngineError(Exception):
    """Base class for every error raised by ``perf_engine``."""


class ConfigError(PerfEngineError):
    """Raised when a required argument is missing or invalid."""


class DependencyMissingError(PerfEngineError):
    """Raised when a required external binary is not on ``PATH``."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"{binary} is required but not installed")


class JobNotFoundError(PerfEngineError):
    """Raised when the job to observe does not exist in the cluster."""

    def __init__(self, kind: str, name: str, namespace: str) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        super().__init__(f"{kind.capitalize()} '{name}' not found in namespace '{namespace}'")


class TransientQueryError(PerfEngineError):
    """Raised when a single status or resource query fails or is unparseable."""


class VeleroCommandError(PerfEngineError):
    """Raised when a ``velero`` CLI invocation fails."""


class AnalysisError(PerfEngineError):
    """Raised when performance logs cannot be located or analyzed."""
