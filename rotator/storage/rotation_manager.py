"""
Main rotation manager - orchestrates the rotation pipeline.

A run is strictly sequential: scan the source directory, classify the
backups, rebuild the destination symlink farm, then prune the source. Fatal
errors stop the pipeline at the stage that raised them.
"""

import logging
import time
from datetime import datetime
from typing import Any, List, Optional, Tuple

from rotator.monitoring.rotation_metrics import RotationMetrics
from rotator.storage.rotation_classifier import RetentionClassifier, unselected
from rotator.storage.rotation_config import RotationConfig, load_rotation_config
from rotator.storage.rotation_errors import RotationError
from rotator.storage.rotation_links import LinkManager
from rotator.storage.rotation_logging import RotationLogger
from rotator.storage.rotation_models import BackupFile, RotationResult, ScanResult, SelectionSet
from rotator.storage.rotation_pruner import Pruner
from rotator.storage.rotation_scanner import BackupScanner

logger = logging.getLogger(__name__)


class RotationManager:
    """
    Runs the rotation pipeline for one source/destination pair.

    The manager holds no lock. Callers must not run two rotations against
    the same directories at the same time.
    """

    def __init__(self, config: RotationConfig, metrics: Optional[RotationMetrics] = None):
        self.config = config

        self.scanner = BackupScanner(config.source_dir, config.filename_suffix)
        self.classifier = RetentionClassifier(config.policy)
        self.link_manager = LinkManager(config.source_dir, config.destination_dir)
        self.pruner = Pruner(dry_run=config.dry_run)

        self.audit = RotationLogger(str(config.logs_dir)) if config.logs_dir else None
        if metrics is None and config.metrics_textfile:
            metrics = RotationMetrics()
        self.metrics = metrics

        logger.debug(f"Rotation Manager initialized for {config.source_dir} -> {config.destination_dir}")

    def plan(self) -> Tuple[ScanResult, SelectionSet, List[BackupFile]]:
        """Scan and classify without touching either directory."""
        scan = self.scanner.scan()
        selection = self.classifier.classify(scan.files)
        return scan, selection, unselected(scan.files, selection)

    def run(self) -> RotationResult:
        """
        Run a full rotation.

        Returns:
            RotationResult with status 'success', or 'partial' if a link
            could not be created or some backups could not be removed.

        Raises:
            RotationError: a fatal error stopped the pipeline. Clearing the
                destination is fatal, creating a single link is not. The
                failed result is still recorded in the audit trail and
                metrics.
        """
        started = time.monotonic()
        result = RotationResult(
            run_id=f"rotation_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
            timestamp=datetime.now(),
            source_dir=self.config.source_dir,
            destination_dir=self.config.destination_dir,
            policy=self.config.policy,
            dry_run=self.config.dry_run,
            status='failed',
            duration_seconds=0.0,
        )

        if self.config.dry_run:
            logger.info("Dry run enabled")

        logger.info(f"Starting rotation of {self.config.source_dir} (policy: {self.config.policy.summary()})")

        try:
            scan = self.scanner.scan()
            result.files_found = len(scan.files)
            result.parse_errors = len(scan.parse_errors)

            selection = self.classifier.classify(scan.files)
            result.selection = selection

            link_report = self.link_manager.rebuild(selection)
            result.links_created = len(link_report.links_created)
            if link_report.failure is not None:
                result.link_failure = str(link_report.failure)

            prune_report = self.pruner.prune(scan.files, selection)
            result.files_pruned = prune_report.would_remove if self.config.dry_run else prune_report.removed
            result.prune_failures = [str(failure.path) for failure in prune_report.failures]

            result.status = 'partial' if prune_report.failures or result.link_failure else 'success'

        except RotationError as e:
            result.error_message = str(e)
            self._finish(result, started)
            raise

        self._finish(result, started)
        return result

    def _finish(self, result: RotationResult, started: float):
        result.duration_seconds = time.monotonic() - started

        if self.audit is not None:
            self.audit.log_rotation_run(result)
        else:
            logger.info(f"Rotation {result.status} in {result.duration_seconds:.2f}s")

        if self.metrics is not None:
            self.metrics.record_result(result)
            if self.config.metrics_textfile:
                self.metrics.write_textfile(self.config.metrics_textfile)


def create_rotation_manager(config_path: Optional[str] = None, **overrides: Any) -> RotationManager:
    """Create a RotationManager from a config file and explicit overrides."""
    return RotationManager(load_rotation_config(config_path, **overrides))
