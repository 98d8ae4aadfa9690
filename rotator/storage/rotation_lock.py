"""
Run lock for callers that need to serialise rotation runs.

The pipeline itself never locks; the CLI takes this lock when a lock path
is configured.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from rotator.storage.rotation_errors import RotationLockError

logger = logging.getLogger(__name__)


class RunLock:
    """Exclusive lock file holding the PID of the running rotation."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._acquired = False

    def acquire(self):
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            holder = self._read_holder()
            raise RotationLockError(
                f"A rotation is already running (lock {self.path}"
                + (f", pid {holder}" if holder else "")
                + "); remove the file if it is stale"
            ) from e
        except OSError as e:
            raise RotationLockError(f"Cannot create lock {self.path}: {e}") from e

        with os.fdopen(fd, 'w') as f:
            f.write(f"{os.getpid()}\n")
        self._acquired = True
        logger.debug(f"Acquired run lock {self.path}")

    def release(self):
        if not self._acquired:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Run lock {self.path} disappeared before release")
        self._acquired = False
        logger.debug(f"Released run lock {self.path}")

    def _read_holder(self) -> Optional[str]:
        try:
            return self.path.read_text().strip() or None
        except OSError:
            return None

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
