"""
Source directory scanner for the rotation system.

Finds backup files by the timestamp embedded in their names and returns
them newest first.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List

from rotator.storage.rotation_errors import EmptySelectionError, ParseError, ScanIOError
from rotator.storage.rotation_models import BackupFile, ScanResult

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".sql.gz"
TIMESTAMP_REGEX = r"(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2})"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def build_pattern(suffix: str = DEFAULT_SUFFIX) -> re.Pattern:
    """Compile the backup filename pattern for a given suffix."""
    return re.compile(TIMESTAMP_REGEX + re.escape(suffix))


class BackupScanner:
    """Lists a source directory and extracts backup timestamps."""

    def __init__(self, source_dir: Path, suffix: str = DEFAULT_SUFFIX):
        self.source_dir = Path(source_dir)
        self.suffix = suffix
        self.pattern = build_pattern(suffix)

    def scan(self) -> ScanResult:
        """
        Scan the source directory.

        Returns:
            ScanResult with backups sorted newest first and any timestamp
            parse errors.

        Raises:
            ScanIOError: the directory could not be listed.
            EmptySelectionError: no entry matched the backup pattern.
        """
        try:
            entries = sorted(self.source_dir.iterdir())
        except OSError as e:
            raise ScanIOError(self.source_dir, e) from e

        files: List[BackupFile] = []
        parse_errors: List[ParseError] = []

        for entry in entries:
            match = self.pattern.search(entry.name)
            if not match:
                continue

            if not entry.is_file():
                logger.debug(f"Skipping non-file entry {entry.name}")
                continue

            try:
                timestamp = datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
            except ValueError as e:
                error = ParseError(entry.name, match.group(1), e)
                logger.warning(f"Skipping backup with invalid timestamp: {error}")
                parse_errors.append(error)
                continue

            files.append(BackupFile(name=entry.name, timestamp=timestamp, path=entry))

        if not files:
            raise EmptySelectionError(self.source_dir)

        files.sort(key=BackupFile.sort_key, reverse=True)
        logger.info(f"Found {len(files)} backups in {self.source_dir}")

        return ScanResult(source_dir=self.source_dir, files=files, parse_errors=parse_errors)
