"""
Generational retention classifier.

Applies a RetentionPolicy to a newest-first list of backups. The first
``keep`` backups are always retained; the rest compete for daily, weekly,
monthly and yearly buckets, where each bucket is represented by its newest
member and each tier keeps at most its quota of buckets.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Sequence

from rotator.storage.rotation_models import BackupFile, RetentionPolicy, RetentionTag, SelectionSet

logger = logging.getLogger(__name__)


def day_key(timestamp: datetime) -> str:
    return timestamp.strftime("%Y-%m-%d")


def week_key(timestamp: datetime) -> str:
    """ISO week key; the year is the ISO week-year, not the calendar year."""
    iso = timestamp.isocalendar()
    return f"{iso[0]:04d}-W{iso[1]:02d}"


def month_key(timestamp: datetime) -> str:
    return timestamp.strftime("%Y-%m")


def year_key(timestamp: datetime) -> str:
    return f"{timestamp.year:04d}"


TIER_KEYS: Dict[RetentionTag, Callable[[datetime], str]] = {
    RetentionTag.DAILY: day_key,
    RetentionTag.WEEKLY: week_key,
    RetentionTag.MONTHLY: month_key,
    RetentionTag.YEARLY: year_key,
}


class RetentionClassifier:
    """Selects backups to retain under a RetentionPolicy."""

    def __init__(self, policy: RetentionPolicy):
        self.policy = policy

    def classify(self, backups: Sequence[BackupFile]) -> SelectionSet:
        """
        Build the selection for a list of backups.

        Args:
            backups: Backups sorted newest first. The order is relied upon:
                the first backup seen for a bucket becomes its representative.

        Returns:
            SelectionSet mapping each retained filename to its tags.
        """
        selection = SelectionSet()

        head = min(self.policy.keep, len(backups))
        for backup in backups[:head]:
            selection.add(backup, RetentionTag.KEEP)

        buckets: Dict[RetentionTag, Dict[str, BackupFile]] = {tag: {} for tag in TIER_KEYS}

        for backup in backups[head:]:
            for tag, key_func in TIER_KEYS.items():
                occupied = buckets[tag]
                key = key_func(backup.timestamp)
                if key in occupied or len(occupied) >= self.policy.quota_for(tag):
                    continue
                occupied[key] = backup
                selection.add(backup, tag)
                logger.debug(f"{backup.name} represents {tag.value} bucket {key}")

        logger.info(
            f"Selected {len(selection)} of {len(backups)} backups "
            f"(keep={head}, " + ", ".join(
                f"{tag.value}={len(buckets[tag])}" for tag in TIER_KEYS
            ) + ")"
        )
        return selection


def classify(backups: Sequence[BackupFile], policy: RetentionPolicy) -> SelectionSet:
    """Convenience wrapper around RetentionClassifier."""
    return RetentionClassifier(policy).classify(backups)


def unselected(backups: Sequence[BackupFile], selection: SelectionSet) -> List[BackupFile]:
    """Backups absent from the selection, in input order."""
    return [backup for backup in backups if backup not in selection]
