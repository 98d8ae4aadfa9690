"""
Symlink farm for the rotation system.

The destination directory is rebuilt on every run so it holds exactly one
link per (tag, backup) pair of the current selection.
"""

import logging
import os
from pathlib import Path

from rotator.storage.rotation_errors import LinkIOError
from rotator.storage.rotation_models import BackupFile, LinkReport, RetentionTag, SelectionSet

logger = logging.getLogger(__name__)


def link_name(tag: RetentionTag, backup: BackupFile) -> str:
    return f"{tag.value}-{backup.name}"


class LinkManager:
    """Rebuilds the destination directory from a selection."""

    def __init__(self, source_dir: Path, destination_dir: Path):
        self.source_dir = Path(source_dir)
        self.destination_dir = Path(destination_dir)

    def clear(self) -> int:
        """
        Remove every entry in the destination directory.

        Returns:
            Number of entries removed.

        Raises:
            LinkIOError: the directory could not be listed or an entry could
                not be removed.
        """
        try:
            entries = list(self.destination_dir.iterdir())
        except OSError as e:
            raise LinkIOError(self.destination_dir, "list", e) from e

        for entry in entries:
            try:
                if entry.is_dir() and not entry.is_symlink():
                    entry.rmdir()
                else:
                    entry.unlink()
            except OSError as e:
                raise LinkIOError(entry, "remove", e) from e

        logger.debug(f"Cleared {len(entries)} entries from {self.destination_dir}")
        return len(entries)

    def link(self, selection: SelectionSet) -> LinkReport:
        """
        Create one symlink per (tag, backup) pair.

        Links are named ``<tag>-<filename>`` and point at the absolute path of
        the backup in the source directory. Existing entries of the same name
        are left alone. The first failure stops linking and is recorded on
        the report; links created before it are kept.
        """
        report = LinkReport(destination_dir=self.destination_dir)
        source_root = self.source_dir.resolve()

        for tag, backup in selection.link_pairs():
            target = source_root / backup.name
            link_path = self.destination_dir / link_name(tag, backup)

            if os.path.lexists(link_path):
                report.links_skipped.append(link_path)
                continue

            try:
                link_path.symlink_to(target)
            except OSError as e:
                report.failure = LinkIOError(link_path, "create link", e)
                logger.error(f"{report.failure}; remaining links skipped")
                break

            report.links_created.append(link_path)

        logger.info(
            f"Linked {len(report.links_created)} entries in {self.destination_dir}"
            + (f" ({len(report.links_skipped)} already present)" if report.links_skipped else "")
        )
        return report

    def rebuild(self, selection: SelectionSet) -> LinkReport:
        """Clear the destination, then link the selection."""
        removed = self.clear()
        report = self.link(selection)
        report.entries_removed = removed
        return report
