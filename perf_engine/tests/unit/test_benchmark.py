"""Unit tests for perf_engine.velero."""

from __future__ import annotations

import subprocess
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from perf_engine.config import Settings
from perf_engine.errors import (
    DependencyMissingError,
    JobNotFoundError,
    TransientQueryError,
    VeleroCommandError,
)
from perf_engine.models.job import JobHandle, JobKind, JobPhase, JobStatus
from perf_engine.retry import RetryConfig
from perf_engine.shell import CommandError
from perf_engine.velero import (
    RateClass,
    VeleroClient,
    classify_rate,
    classify_with_settings,
    ensure_backup_completed,
    timestamped_name,
    wait_for_job,
)

COMPLETED = JobStatus(phase=JobPhase.COMPLETED, items_processed=30, total_items=30)


class TestClassifyRate:
    @pytest.mark.parametrize(
        ("rate", "expected"),
        [
            (0.0, RateClass.SLOW),
            (9.99, RateClass.SLOW),
            (10.0, RateClass.MODERATE),
            (49.9, RateClass.MODERATE),
            (50.0, RateClass.FAST),
            (3000.0, RateClass.FAST),
        ],
    )
    def test_default_bands(self, rate: float, expected: RateClass):
        assert classify_rate(rate) is expected

    def test_settings_bands(self):
        settings = Settings(slow_rate_below=100.0, moderate_rate_below=1000.0)
        assert classify_with_settings(500.0, settings) is RateClass.MODERATE


class TestTimestampedName:
    def test_format(self):
        assert timestamped_name("perf-test", datetime(2025, 3, 1, 9, 5, 7)) == "perf-test-20250301-090507"


class TestWaitForJob:
    def test_waits_until_visible(self):
        store = MagicMock()
        store.get_status.side_effect = [
            JobNotFoundError("backup", "perf-test", "openshift-adp"),
            JobStatus.unknown(),
        ]
        sleep = MagicMock()
        handle = JobHandle(name="perf-test", namespace="openshift-adp")

        status = wait_for_job(store, handle, RetryConfig(jitter=False), sleep=sleep)

        assert status == JobStatus.unknown()
        sleep.assert_called_once_with(1.0)

    def test_gives_up(self):
        store = MagicMock()
        store.get_status.side_effect = JobNotFoundError("backup", "perf-test", "openshift-adp")
        handle = JobHandle(name="perf-test", namespace="openshift-adp")

        with pytest.raises(JobNotFoundError):
            wait_for_job(store, handle, RetryConfig(max_retries=2, jitter=False), sleep=MagicMock())
        assert store.get_status.call_count == 3


class TestEnsureBackupCompleted:
    def test_completed(self):
        store = MagicMock()
        store.get_status.return_value = COMPLETED

        assert ensure_backup_completed(store, "perf-test", "openshift-adp") == COMPLETED
        handle = store.get_status.call_args.args[0]
        assert handle.kind is JobKind.BACKUP
        assert handle.name == "perf-test"

    def test_not_completed(self):
        store = MagicMock()
        store.get_status.return_value = JobStatus(phase=JobPhase.IN_PROGRESS)

        with pytest.raises(VeleroCommandError, match="is not completed \\(Status: InProgress\\)"):
            ensure_backup_completed(store, "perf-test", "openshift-adp")

    def test_missing(self):
        store = MagicMock()
        store.get_status.side_effect = JobNotFoundError("backup", "perf-test", "openshift-adp")

        with pytest.raises(JobNotFoundError):
            ensure_backup_completed(store, "perf-test", "openshift-adp")

    def test_unqueryable(self):
        store = MagicMock()
        store.get_status.side_effect = TransientQueryError("timeout")

        with pytest.raises(VeleroCommandError, match="Cannot query backup"):
            ensure_backup_completed(store, "perf-test", "openshift-adp")


@pytest.fixture
def velero():
    with patch("perf_engine.velero.velero_client.require_binary", return_value="/usr/bin/velero"):
        yield VeleroClient("openshift-adp", timeout=20)


def _ok() -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")


class TestVeleroClient:
    def test_missing_binary(self):
        with (
            patch(
                "perf_engine.velero.velero_client.require_binary",
                side_effect=DependencyMissingError("velero"),
            ),
            pytest.raises(DependencyMissingError, match="velero is required"),
        ):
            VeleroClient("openshift-adp")

    @patch("perf_engine.velero.velero_client.run_command")
    def test_check_server(self, mock_run: MagicMock, velero: VeleroClient):
        mock_run.return_value = _ok()
        velero.check_server()
        cmd, timeout = mock_run.call_args.args
        assert cmd == ["/usr/bin/velero", "version", "--timeout=20s", "--namespace", "openshift-adp"]
        assert timeout == 20

    @patch("perf_engine.velero.velero_client.run_command")
    def test_check_server_unreachable(self, mock_run: MagicMock, velero: VeleroClient):
        mock_run.side_effect = CommandError("failed", returncode=1, stderr="timed out")
        with pytest.raises(VeleroCommandError):
            velero.check_server()

    @patch("perf_engine.velero.velero_client.run_command")
    def test_create_backup_with_selector(self, mock_run: MagicMock, velero: VeleroClient):
        mock_run.return_value = _ok()
        velero.create_backup("perf-test-1", selector="perf-test=true")
        assert mock_run.call_args.args[0] == [
            "/usr/bin/velero",
            "backup",
            "create",
            "perf-test-1",
            "--selector",
            "perf-test=true",
            "--namespace",
            "openshift-adp",
        ]

    @patch("perf_engine.velero.velero_client.run_command")
    def test_create_backup_with_namespaces(self, mock_run: MagicMock, velero: VeleroClient):
        mock_run.return_value = _ok()
        velero.create_backup("perf-test-1", include_namespaces=["ns-a", "ns-b"])
        assert "--include-namespaces" in mock_run.call_args.args[0]
        assert "ns-a,ns-b" in mock_run.call_args.args[0]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {},
            {"selector": "app=x; rm -rf /"},
            {"include_namespaces": ["Bad_NS"]},
        ],
    )
    @patch("perf_engine.velero.velero_client.run_command")
    def test_create_backup_rejects_bad_input(self, mock_run: MagicMock, velero: VeleroClient, kwargs):
        with pytest.raises(ValueError):
            velero.create_backup("perf-test-1", **kwargs)
        mock_run.assert_not_called()

    @patch("perf_engine.velero.velero_client.run_command")
    def test_create_restore(self, mock_run: MagicMock, velero: VeleroClient):
        mock_run.return_value = _ok()
        velero.create_restore("restore-1", "perf-test-1", namespace_mappings="ns-a:ns-a-copy")
        assert mock_run.call_args.args[0] == [
            "/usr/bin/velero",
            "restore",
            "create",
            "restore-1",
            "--from-backup",
            "perf-test-1",
            "--namespace-mappings",
            "ns-a:ns-a-copy",
            "--namespace",
            "openshift-adp",
        ]

    @patch("perf_engine.velero.velero_client.run_command")
    def test_create_restore_rejects_bad_mapping(self, mock_run: MagicMock, velero: VeleroClient):
        with pytest.raises(ValueError, match="Invalid namespace mappings"):
            velero.create_restore("restore-1", "perf-test-1", namespace_mappings="a=b")
        mock_run.assert_not_called()
