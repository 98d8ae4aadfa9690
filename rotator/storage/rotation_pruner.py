"""
Pruner for the rotation system.

Deletes every scanned backup that is not part of the selection. Deletion is
best effort: a failure is recorded and the remaining candidates are still
processed.
"""

import logging
from typing import Sequence

from rotator.storage.rotation_errors import PruneIOError
from rotator.storage.rotation_models import BackupFile, PruneReport, SelectionSet

logger = logging.getLogger(__name__)


class Pruner:
    """Enforces a selection against the source directory."""

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def prune(self, backups: Sequence[BackupFile], selection: SelectionSet) -> PruneReport:
        """
        Remove unselected backups.

        Args:
            backups: Every backup the scanner returned.
            selection: The classifier's selection.

        Returns:
            PruneReport listing removed files, or in dry-run mode the files
            that would have been removed, plus per-file failures.
        """
        report = PruneReport(dry_run=self.dry_run)

        for backup in backups:
            if backup in selection:
                continue

            if self.dry_run:
                logger.info(f"DRY RUN: would remove {backup.path}")
                report.would_remove.append(backup.name)
                continue

            try:
                backup.path.unlink()
            except OSError as e:
                error = PruneIOError(backup.path, e)
                logger.error(str(error))
                report.failures.append(error)
                continue

            logger.info(f"Removed {backup.path}")
            report.removed.append(backup.name)

        if self.dry_run:
            logger.info(f"DRY RUN: {len(report.would_remove)} backups would be removed")
        else:
            logger.info(
                f"Pruned {len(report.removed)} backups"
                + (f", {len(report.failures)} failed" if report.failures else "")
            )
        return report
