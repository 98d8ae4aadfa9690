"""
Unit tests for rotation metrics.
"""

from datetime import datetime
from pathlib import Path

import pytest
import structlog
from prometheus_client import CollectorRegistry

from rotator.monitoring.rotation_metrics import RotationMetrics
from rotator.storage.rotation_models import (
    BackupFile,
    RetentionPolicy,
    RetentionTag,
    RotationResult,
    SelectionSet,
)


@pytest.fixture
def result():
    newest = BackupFile("db-2024-03-10T02-00-00.sql.gz", datetime(2024, 3, 10, 2), Path("/b/new"))
    older = BackupFile("db-2024-03-09T02-00-00.sql.gz", datetime(2024, 3, 9, 2), Path("/b/old"))
    selection = SelectionSet()
    selection.add(newest, RetentionTag.KEEP)
    selection.add(older, RetentionTag.DAILY)
    selection.add(older, RetentionTag.WEEKLY)

    return RotationResult(
        run_id="rotation_20240310_020500",
        timestamp=datetime(2024, 3, 10, 2, 5),
        source_dir=Path("/b"),
        destination_dir=Path("/current"),
        policy=RetentionPolicy(),
        dry_run=False,
        status='partial',
        duration_seconds=0.25,
        files_found=6,
        parse_errors=1,
        selection=selection,
        links_created=3,
        files_pruned=["a", "b", "c"],
        prune_failures=["/b/d"],
    )


class TestRotationMetrics:
    """Test cases for RotationMetrics."""

    def test_initialization_with_custom_registry(self):
        registry = CollectorRegistry()
        metrics = RotationMetrics(registry=registry)

        assert metrics.registry is registry

    def test_record_result(self, result):
        metrics = RotationMetrics()
        metrics.record_result(result)
        registry = metrics.registry

        assert registry.get_sample_value('backup_rotation_files_found') == 6
        assert registry.get_sample_value('backup_rotation_files_selected') == 2
        assert registry.get_sample_value('backup_rotation_files_selected_by_tag', {'tag': 'keep'}) == 1
        assert registry.get_sample_value('backup_rotation_files_selected_by_tag', {'tag': 'weekly'}) == 1
        assert registry.get_sample_value('backup_rotation_files_selected_by_tag', {'tag': 'yearly'}) == 0
        assert registry.get_sample_value('backup_rotation_files_pruned') == 3
        assert registry.get_sample_value('backup_rotation_prune_failures') == 1
        assert registry.get_sample_value('backup_rotation_parse_errors') == 1
        assert registry.get_sample_value('backup_rotation_links_created') == 3
        assert registry.get_sample_value('backup_rotation_last_run_success') == 0
        assert registry.get_sample_value('backup_rotation_dry_run') == 0
        assert registry.get_sample_value('backup_rotation_run_duration_seconds_count') == 1
        assert registry.get_sample_value('backup_rotation_last_run_timestamp_seconds') == result.timestamp.timestamp()

    def test_failed_run_without_selection(self, result):
        result.selection = None
        result.status = 'failed'
        metrics = RotationMetrics()

        metrics.record_result(result)

        assert metrics.registry.get_sample_value('backup_rotation_files_selected') == 0
        assert metrics.registry.get_sample_value('backup_rotation_files_selected_by_tag', {'tag': 'keep'}) == 0

    def test_write_textfile(self, result, tmp_path):
        metrics = RotationMetrics()
        metrics.record_result(result)
        path = tmp_path / "rotation.prom"

        assert metrics.write_textfile(path) is True

        content = path.read_text()
        assert "backup_rotation_files_found 6.0" in content
        assert 'backup_rotation_files_selected_by_tag{tag="daily"} 1.0' in content

    def test_write_textfile_failure_is_reported(self, result, tmp_path):
        metrics = RotationMetrics()

        assert metrics.write_textfile(tmp_path / "missing" / "rotation.prom") is False

    def test_link_failure_is_recorded(self, result):
        result.link_failure = "failed to create link /current/keep-x: denied"
        metrics = RotationMetrics()

        metrics.record_result(result)

        assert metrics.registry.get_sample_value('backup_rotation_link_failed') == 1


class TestStructlogRouting:
    """structlog output must not reach stdout when used as a library."""

    @pytest.fixture(autouse=True)
    def unconfigured_structlog(self):
        structlog.reset_defaults()
        yield
        structlog.reset_defaults()

    def test_metrics_configure_structlog_when_unconfigured(self):
        assert not structlog.is_configured()

        RotationMetrics()

        assert structlog.is_configured()

    def test_write_textfile_keeps_stdout_clean(self, result, tmp_path, capsys):
        metrics = RotationMetrics()
        metrics.record_result(result)

        assert metrics.write_textfile(tmp_path / "rotation.prom") is True
        assert capsys.readouterr().out == ""
