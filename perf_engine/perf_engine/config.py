"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Tooling settings loaded from environment variables with VELERO_PERF_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="VELERO_PERF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Cluster
    velero_namespace: str = "openshift-adp"
    velero_pod_selector: str = "app.kubernetes.io/name=velero"
    kubectl_binary: str = "kubectl"
    velero_binary: str = "velero"
    query_timeout_seconds: int = Field(default=30, gt=0)

    # Monitoring
    poll_interval_seconds: int = Field(default=10, gt=0)
    output_dir: Path = Path("./backup-performance-logs")
    analysis_output_dir: Path = Path("./performance-analysis")
    rate_precision: int = Field(default=2, ge=0)

    # Degradation detection, shared by the monitor and the analyzer.
    degradation_item_mark: int = Field(default=5000, ge=0)
    degradation_rate_threshold: float = Field(default=5.0, gt=0.0)

    # Benchmark rate classification (objects/second).
    slow_rate_below: float = 10.0
    moderate_rate_below: float = 50.0


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings for namespace: %s", settings.velero_namespace)

    return settings
