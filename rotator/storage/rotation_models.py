"""
Data models for the rotation system.

This module contains the data classes and enums shared by the scanner,
classifier, link manager and pruner.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from rotator.storage.rotation_errors import ConfigError, LinkIOError, ParseError, PruneIOError


class RetentionTag(Enum):
    """Reasons a backup is retained, in reporting order."""
    KEEP = "keep"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


TAG_ORDER = {tag: index for index, tag in enumerate(RetentionTag)}


@dataclass(frozen=True)
class BackupFile:
    """A backup artifact found in the source directory."""
    name: str
    timestamp: datetime
    path: Path

    def sort_key(self) -> Tuple[datetime, str]:
        return (self.timestamp, self.name)


@dataclass(frozen=True)
class RetentionPolicy:
    """Immutable retention quotas applied by the classifier."""
    keep: int = 5
    keep_days: int = 7
    keep_weeks: int = 5
    keep_months: int = 6
    keep_years: int = 2

    def __post_init__(self):
        for name in ('keep', 'keep_days', 'keep_weeks', 'keep_months', 'keep_years'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigError(f"{name} must not be negative, got {value}")

    def quota_for(self, tag: RetentionTag) -> int:
        """Return the quota configured for a tag."""
        return {
            RetentionTag.KEEP: self.keep,
            RetentionTag.DAILY: self.keep_days,
            RetentionTag.WEEKLY: self.keep_weeks,
            RetentionTag.MONTHLY: self.keep_months,
            RetentionTag.YEARLY: self.keep_years,
        }[tag]

    def summary(self) -> Dict[str, int]:
        return {
            "keep": self.keep,
            "keep_days": self.keep_days,
            "keep_weeks": self.keep_weeks,
            "keep_months": self.keep_months,
            "keep_years": self.keep_years,
        }


class SelectionSet:
    """
    Backups chosen for retention, keyed by filename.

    Each member carries the union of the tags it earned. A file is a member
    if and only if it has at least one tag, since membership is only ever
    created through ``add``.
    """

    def __init__(self):
        self._files: Dict[str, BackupFile] = {}
        self._tags: Dict[str, Set[RetentionTag]] = {}

    def add(self, backup: BackupFile, tag: RetentionTag):
        """Tag a backup, adding it to the selection if it is not there yet."""
        if backup.name not in self._files:
            self._files[backup.name] = backup
            self._tags[backup.name] = set()
        self._tags[backup.name].add(tag)

    def __contains__(self, item: Union[str, BackupFile]) -> bool:
        name = item.name if isinstance(item, BackupFile) else item
        return name in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[BackupFile]:
        """Iterate over selected backups, newest first."""
        return iter(sorted(self._files.values(), key=BackupFile.sort_key, reverse=True))

    def names(self) -> Set[str]:
        return set(self._files)

    def tags_for(self, name: str) -> List[RetentionTag]:
        """Tags of a selected file in reporting order; empty if not selected."""
        return sorted(self._tags.get(name, ()), key=TAG_ORDER.__getitem__)

    def with_tag(self, tag: RetentionTag) -> List[BackupFile]:
        return [backup for backup in self if tag in self._tags[backup.name]]

    def link_pairs(self) -> List[Tuple[RetentionTag, BackupFile]]:
        """One (tag, backup) pair per link the selection should produce."""
        return [(tag, backup) for backup in self for tag in self.tags_for(backup.name)]

    def as_dict(self) -> Dict[str, List[str]]:
        return {backup.name: [tag.value for tag in self.tags_for(backup.name)] for backup in self}


@dataclass
class ScanResult:
    """Outcome of listing the source directory."""
    source_dir: Path
    files: List[BackupFile]
    parse_errors: List[ParseError] = field(default_factory=list)


@dataclass
class LinkReport:
    """Outcome of rebuilding the destination directory."""
    destination_dir: Path
    entries_removed: int = 0
    links_created: List[Path] = field(default_factory=list)
    links_skipped: List[Path] = field(default_factory=list)
    failure: Optional[LinkIOError] = None


@dataclass
class PruneReport:
    """Outcome of enforcing the selection against the source directory."""
    dry_run: bool
    removed: List[str] = field(default_factory=list)
    would_remove: List[str] = field(default_factory=list)
    failures: List[PruneIOError] = field(default_factory=list)


@dataclass
class RotationResult:
    """Summary of a single rotation run."""
    run_id: str
    timestamp: datetime
    source_dir: Path
    destination_dir: Path
    policy: RetentionPolicy
    dry_run: bool
    status: str  # 'success', 'partial', 'failed'
    duration_seconds: float
    files_found: int = 0
    parse_errors: int = 0
    selection: Optional[SelectionSet] = None
    links_created: int = 0
    link_failure: Optional[str] = None
    files_pruned: List[str] = field(default_factory=list)
    prune_failures: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def files_selected(self) -> int:
        return len(self.selection) if self.selection is not None else 0
