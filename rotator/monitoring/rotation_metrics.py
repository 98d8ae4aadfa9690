"""
Prometheus metrics for backup rotation runs.

A rotation is a short-lived process, so metrics are kept in a dedicated
registry and written to a textfile for the node_exporter textfile collector
instead of being served over HTTP.
"""

from pathlib import Path
from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Gauge, Histogram, write_to_textfile

from rotator.storage.rotation_models import RetentionTag, RotationResult

logger = structlog.get_logger(__name__)


def configure_structlog():
    """Route structlog events through the standard logging handlers."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.KeyValueRenderer(key_order=['event']),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


class RotationMetrics:
    """
    Collects per-run rotation metrics.

    Metrics include:
    - Files found, selected (overall and per tag) and pruned
    - Parse errors and prune failures
    - Links created in the destination and link failures
    - Last run timestamp, outcome and duration
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        if not structlog.is_configured():
            configure_structlog()

        self.registry = registry or CollectorRegistry()

        self.files_found = Gauge(
            'backup_rotation_files_found',
            'Backups matched in the source directory',
            registry=self.registry
        )
        self.files_selected = Gauge(
            'backup_rotation_files_selected',
            'Backups retained by the policy',
            registry=self.registry
        )
        self.files_selected_by_tag = Gauge(
            'backup_rotation_files_selected_by_tag',
            'Backups retained per retention tag',
            ['tag'],
            registry=self.registry
        )
        self.files_pruned = Gauge(
            'backup_rotation_files_pruned',
            'Backups removed (or that would be removed in dry run)',
            registry=self.registry
        )
        self.prune_failures = Gauge(
            'backup_rotation_prune_failures',
            'Backups that could not be removed',
            registry=self.registry
        )
        self.parse_errors = Gauge(
            'backup_rotation_parse_errors',
            'Backup names with an unparsable timestamp',
            registry=self.registry
        )
        self.links_created = Gauge(
            'backup_rotation_links_created',
            'Symlinks created in the destination directory',
            registry=self.registry
        )
        self.link_failed = Gauge(
            'backup_rotation_link_failed',
            '1 if linking stopped early on a failed link',
            registry=self.registry
        )
        self.last_run_timestamp = Gauge(
            'backup_rotation_last_run_timestamp_seconds',
            'Unix time of the last rotation run',
            registry=self.registry
        )
        self.last_run_success = Gauge(
            'backup_rotation_last_run_success',
            '1 if the last run completed without errors, 0 otherwise',
            registry=self.registry
        )
        self.dry_run = Gauge(
            'backup_rotation_dry_run',
            '1 if the last run was a dry run',
            registry=self.registry
        )
        self.run_duration = Histogram(
            'backup_rotation_run_duration_seconds',
            'Duration of rotation runs',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 120.0],
            registry=self.registry
        )

    def record_result(self, result: RotationResult):
        """Update every metric from a finished (or failed) run."""
        self.files_found.set(result.files_found)
        self.files_selected.set(result.files_selected)
        for tag in RetentionTag:
            count = len(result.selection.with_tag(tag)) if result.selection is not None else 0
            self.files_selected_by_tag.labels(tag=tag.value).set(count)
        self.files_pruned.set(len(result.files_pruned))
        self.prune_failures.set(len(result.prune_failures))
        self.parse_errors.set(result.parse_errors)
        self.links_created.set(result.links_created)
        self.link_failed.set(1 if result.link_failure else 0)
        self.last_run_timestamp.set(result.timestamp.timestamp())
        self.last_run_success.set(1 if result.status == 'success' else 0)
        self.dry_run.set(1 if result.dry_run else 0)
        self.run_duration.observe(result.duration_seconds)

        logger.debug("Rotation metrics recorded",
                     run_id=result.run_id,
                     status=result.status,
                     selected=result.files_selected,
                     pruned=len(result.files_pruned))

    def write_textfile(self, path: Path) -> bool:
        """Write the registry to a textfile; failures are logged, not raised."""
        try:
            write_to_textfile(str(path), self.registry)
        except OSError as e:
            logger.error("Failed to write rotation metrics", path=str(path), error=str(e))
            return False

        logger.info("Rotation metrics written", path=str(path))
        return True
