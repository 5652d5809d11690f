"""Subprocess helpers shared by the kubectl and velero clients.

All interaction with external binaries goes through :func:`run_command`
with explicit timeouts, so that callers receive typed exceptions with
descriptive messages rather than raw subprocess failures.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from perf_engine.errors import DependencyMissingError, PerfEngineError

logger = logging.getLogger(__name__)


class CommandError(PerfEngineError):
    """Raised when an external command exits non-zero or times out."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def require_binary(binary: str) -> str:
    """Return the resolved path of *binary* or raise :class:`DependencyMissingError`."""
    path = shutil.which(binary)
    if path is None:
        raise DependencyMissingError(binary)
    return path


def run_command(cmd: list[str], timeout: int) -> subprocess.CompletedProcess[str]:
    """Execute *cmd* and return the completed process.

    Raises
    ------
    CommandError
        On non-zero exit or timeout.
    DependencyMissingError
        If the executable cannot be started.
    """
    logger.debug("Running: %s", " ".join(cmd))
    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise CommandError(
            f"command failed: {' '.join(cmd)}\nExit code {exc.returncode}: {stderr}",
            returncode=exc.returncode,
            stderr=stderr,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(f"command timed out after {timeout}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise DependencyMissingError(cmd[0]) from exc
