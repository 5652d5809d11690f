"""Job identity and status models for Velero backups and restores.

A ``JobHandle`` names the custom resource being observed.  ``JobStatus`` is
the typed response of a single status query, built from the resource's
JSON representation rather than from human-readable CLI output.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobKind(str, Enum):
    """Kind of Velero job being observed."""

    BACKUP = "backup"
    RESTORE = "restore"

    @property
    def resource(self) -> str:
        """Fully qualified Kubernetes resource name."""
        return f"{self.value}s.velero.io"

    @property
    def progress_field(self) -> str:
        """Key under ``status.progress`` holding the processed-item count."""
        return "itemsBackedUp" if self is JobKind.BACKUP else "itemsRestored"

    @property
    def processed_label(self) -> str:
        return "Objects Backed Up" if self is JobKind.BACKUP else "Objects Restored"


class JobPhase(str, Enum):
    """Phase reported by Velero under ``status.phase``."""

    UNKNOWN = "Unknown"
    NEW = "New"
    FAILED_VALIDATION = "FailedValidation"
    IN_PROGRESS = "InProgress"
    WAITING_FOR_PLUGIN_OPERATIONS = "WaitingForPluginOperations"
    FINALIZING = "Finalizing"
    COMPLETED = "Completed"
    PARTIALLY_FAILED = "PartiallyFailed"
    FAILED = "Failed"

    @classmethod
    def parse(cls, value: Any) -> JobPhase:
        """Map a raw phase value to a member, falling back to ``UNKNOWN``."""
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES: frozenset[JobPhase] = frozenset(
    {JobPhase.COMPLETED, JobPhase.FAILED, JobPhase.PARTIALLY_FAILED}
)


class JobHandle(BaseModel):
    """Identifies the backup or restore under observation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Name of the Velero backup or restore resource.",
    )
    namespace: str = Field(
        ...,
        min_length=1,
        description="Namespace Velero is installed in.",
    )
    kind: JobKind = Field(
        default=JobKind.BACKUP,
        description="Whether the job is a backup or a restore.",
    )


class JobStatus(BaseModel):
    """Typed result of one status query against the job store."""

    phase: JobPhase = JobPhase.UNKNOWN
    items_processed: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)

    @classmethod
    def unknown(cls) -> JobStatus:
        """Placeholder used when a poll fails."""
        return cls()

    @classmethod
    def from_resource(cls, resource: dict[str, Any], kind: JobKind) -> JobStatus:
        """Build a status from the JSON body of a Velero custom resource.

        Missing fields default to ``Unknown``/``0``.  Non-integer counts are
        treated as malformed and raise :class:`ValueError`.
        """
        status = resource.get("status") or {}
        if not isinstance(status, dict):
            raise ValueError("status is not an object")
        progress = status.get("progress") or {}
        if not isinstance(progress, dict):
            raise ValueError("status.progress is not an object")

        items = progress.get(kind.progress_field, 0)
        total = progress.get("totalItems", 0)
        if not isinstance(items, int) or not isinstance(total, int):
            raise ValueError(f"non-integer progress counts: {items!r}/{total!r}")

        return cls(
            phase=JobPhase.parse(status.get("phase")),
            items_processed=max(items, 0),
            total_items=max(total, 0),
        )
