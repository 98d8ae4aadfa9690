"""
Unit tests for the rotation run lock.
"""

import os

import pytest

from rotator.storage.rotation_errors import RotationLockError
from rotator.storage.rotation_lock import RunLock


class TestRunLock:
    """Test cases for RunLock."""

    def test_lock_file_holds_pid_and_is_removed(self, tmp_path):
        lock_path = tmp_path / "rotation.lock"

        with RunLock(lock_path):
            assert lock_path.read_text().strip() == str(os.getpid())

        assert not lock_path.exists()

    def test_second_lock_is_refused(self, tmp_path):
        lock_path = tmp_path / "rotation.lock"

        with RunLock(lock_path):
            with pytest.raises(RotationLockError) as exc_info:
                RunLock(lock_path).acquire()

        assert str(os.getpid()) in str(exc_info.value)

    def test_stale_lock_blocks_until_removed(self, tmp_path):
        lock_path = tmp_path / "rotation.lock"
        lock_path.write_text("12345\n")

        with pytest.raises(RotationLockError):
            RunLock(lock_path).acquire()

        lock_path.unlink()
        with RunLock(lock_path):
            assert lock_path.exists()

    def test_lock_released_on_error(self, tmp_path):
        lock_path = tmp_path / "rotation.lock"

        with pytest.raises(RuntimeError):
            with RunLock(lock_path):
                raise RuntimeError("boom")

        assert not lock_path.exists()

    def test_release_without_acquire_is_noop(self, tmp_path):
        lock_path = tmp_path / "rotation.lock"
        lock_path.write_text("other\n")

        RunLock(lock_path).release()

        assert lock_path.exists()
