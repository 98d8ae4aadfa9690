"""
Logging and audit trail for the rotation system.

Each run is summarised in the log and, when a logs directory is configured,
appended as one JSON line to a per-day audit file.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from rotator.storage.rotation_models import RotationResult

logger = logging.getLogger(__name__)


class RotationLogger:
    """Handles run summaries and the JSONL audit trail."""

    def __init__(self, logs_dir: str = "logs/rotation"):
        self.logs_dir = Path(logs_dir)

    def log_rotation_run(self, result: RotationResult) -> Dict[str, Any]:
        """Log a run summary and store it in the audit trail."""
        log_entry = self._build_log_entry(result)

        if result.status == 'success':
            logger.info(f"✅ Rotation completed: {result.files_selected} kept, "
                        f"{len(result.files_pruned)} pruned in {self._format_duration(result.duration_seconds)}")
        elif result.status == 'failed':
            logger.error(f"❌ Rotation failed: {result.error_message}")
        else:
            problems = []
            if result.link_failure:
                problems.append(f"linking stopped early ({result.link_failure})")
            if result.prune_failures:
                problems.append(f"{len(result.prune_failures)} backups could not be removed")
            logger.warning(f"⚠️ Rotation {result.status}: " + "; ".join(problems))

        self._store_run_log(log_entry)
        return log_entry

    def _build_log_entry(self, result: RotationResult) -> Dict[str, Any]:
        return {
            "run_id": result.run_id,
            "timestamp": result.timestamp.isoformat(),
            "source_dir": str(result.source_dir),
            "destination_dir": str(result.destination_dir),
            "policy": result.policy.summary(),
            "dry_run": result.dry_run,
            "status": result.status,
            "duration_seconds": result.duration_seconds,
            "duration_formatted": self._format_duration(result.duration_seconds),
            "files_found": result.files_found,
            "parse_errors": result.parse_errors,
            "files_selected": result.files_selected,
            "selection": result.selection.as_dict() if result.selection is not None else {},
            "links_created": result.links_created,
            "link_failure": result.link_failure,
            "files_pruned": result.files_pruned,
            "prune_failures": result.prune_failures,
            "error_message": result.error_message,
        }

    def _format_duration(self, duration_seconds: float) -> str:
        """Format duration in a human-readable format."""
        if duration_seconds < 60:
            return f"{duration_seconds:.2f}s"
        elif duration_seconds < 3600:
            return f"{duration_seconds / 60:.1f}m"
        else:
            return f"{duration_seconds / 3600:.1f}h"

    def _store_run_log(self, log_entry: Dict[str, Any]):
        """Append a log entry to today's audit file."""
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            log_date = datetime.now().strftime("%Y-%m-%d")
            log_file = self.logs_dir / f"rotation_runs_{log_date}.jsonl"

            with open(log_file, 'a') as f:
                f.write(json.dumps(log_entry) + '\n')

        except OSError as e:
            logger.error(f"Failed to store rotation log: {e}")
