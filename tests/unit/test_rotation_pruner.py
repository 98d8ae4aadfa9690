"""
Unit tests for the pruner.

Tests deletion of unselected backups, dry runs and best-effort failures.
"""

import shutil
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from rotator.storage.rotation_errors import PruneIOError
from rotator.storage.rotation_models import BackupFile, RetentionTag, SelectionSet
from rotator.storage.rotation_pruner import Pruner


class TestPruner(unittest.TestCase):
    """Test cases for Pruner."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.source_dir = Path(self.temp_dir)

        base = datetime(2024, 3, 1, 2, 0, 0)
        self.backups = []
        for offset in reversed(range(5)):
            timestamp = base + timedelta(days=offset)
            name = f"db-{timestamp.strftime('%Y-%m-%dT%H-%M-%S')}.sql.gz"
            path = self.source_dir / name
            path.write_text("backup")
            self.backups.append(BackupFile(name=name, timestamp=timestamp, path=path))

        self.selection = SelectionSet()
        self.selection.add(self.backups[0], RetentionTag.KEEP)
        self.selection.add(self.backups[2], RetentionTag.DAILY)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def _remaining(self):
        return sorted(p.name for p in self.source_dir.iterdir())

    def test_prune_removes_unselected(self):
        """Test that every unselected backup is deleted."""
        report = Pruner().prune(self.backups, self.selection)

        self.assertEqual(
            report.removed,
            [self.backups[1].name, self.backups[3].name, self.backups[4].name]
        )
        self.assertEqual(report.failures, [])
        self.assertEqual(self._remaining(), sorted([self.backups[0].name, self.backups[2].name]))

    def test_dry_run_removes_nothing(self):
        """Test that dry run only reports deletions."""
        before = self._remaining()

        report = Pruner(dry_run=True).prune(self.backups, self.selection)

        self.assertTrue(report.dry_run)
        self.assertEqual(report.removed, [])
        self.assertEqual(len(report.would_remove), 3)
        self.assertEqual(self._remaining(), before)

    def test_dry_run_logs_intent(self):
        """Test that dry run logs each suppressed deletion."""
        with self.assertLogs('rotator.storage.rotation_pruner', level='INFO') as logs:
            Pruner(dry_run=True).prune(self.backups, self.selection)

        dry_lines = [line for line in logs.output if "DRY RUN: would remove" in line]
        self.assertEqual(len(dry_lines), 3)

    def test_failure_does_not_stop_remaining_deletions(self):
        """Test that one failed deletion is recorded and others continue."""
        self.backups[1].path.unlink()

        report = Pruner().prune(self.backups, self.selection)

        self.assertEqual(len(report.failures), 1)
        self.assertIsInstance(report.failures[0], PruneIOError)
        self.assertEqual(report.failures[0].path, self.backups[1].path)
        self.assertEqual(report.removed, [self.backups[3].name, self.backups[4].name])
        self.assertEqual(self._remaining(), sorted([self.backups[0].name, self.backups[2].name]))

    def test_files_outside_scan_are_never_touched(self):
        """Test that only scanned backups are candidates for deletion."""
        stray = self.source_dir / "db-2024-13-01T02-00-00.sql.gz"
        stray.write_text("unparsable")

        Pruner().prune(self.backups, self.selection)

        self.assertTrue(stray.exists())
