"""Unit tests for the file_tracker module (snapshots and write locks)."""

import threading
import time

import pytest

from cascade_edit.file_tracker import FileTracker


@pytest.fixture(autouse=True)
def _reset_singleton():
    """Reset the FileTracker singleton before each test."""
    FileTracker._instance = None
    yield
    FileTracker._instance = None


@pytest.fixture()
def tracker() -> FileTracker:
    """Return a fresh FileTracker instance."""
    return FileTracker.get_instance()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSnapshots:
    """Tests for snapshot storage."""

    def test_record_read_and_get_snapshot(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "a.py")
        tracker.record_read(path, "x = 1\n")
        assert tracker.get_snapshot(path) == "x = 1\n"

    def test_unknown_file_has_no_snapshot(self, tracker: FileTracker, tmp_path):
        assert tracker.get_snapshot(str(tmp_path / "missing.py")) is None

    def test_paths_are_normalized(self, tracker: FileTracker, tmp_path):
        tracker.record_read(str(tmp_path / "sub" / ".." / "a.py"), "content")
        assert tracker.get_snapshot(str(tmp_path / "a.py")) == "content"

    def test_record_write_replaces_snapshot(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "a.py")
        tracker.record_read(path, "old")
        tracker.record_write(path, "new")
        assert tracker.get_snapshot(path) == "new"

    def test_record_write_without_read(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "created.py")
        tracker.record_write(path, "fresh")
        assert tracker.get_snapshot(path) == "fresh"

    def test_has_changed_since_read(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "a.py")
        tracker.record_read(path, "one")
        assert tracker.has_changed_since_read(path, "one") is False
        assert tracker.has_changed_since_read(path, "two") is True

    def test_never_read_counts_as_unchanged(self, tracker: FileTracker, tmp_path):
        assert tracker.has_changed_since_read(str(tmp_path / "b.py"), "anything") is False

    def test_invalidate(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "a.py")
        tracker.record_read(path, "x")
        tracker.invalidate(path)
        assert tracker.get_snapshot(path) is None

    def test_invalidate_unknown_is_noop(self, tracker: FileTracker, tmp_path):
        tracker.invalidate(str(tmp_path / "never.py"))

    def test_clear(self, tracker: FileTracker, tmp_path):
        tracker.record_read(str(tmp_path / "a.py"), "a")
        tracker.record_read(str(tmp_path / "b.py"), "b")
        tracker.clear()
        assert tracker.get_snapshot(str(tmp_path / "a.py")) is None
        assert tracker.get_snapshot(str(tmp_path / "b.py")) is None


@pytest.mark.unit
class TestSingletonAndLocks:

    def test_singleton(self):
        assert FileTracker.get_instance() is FileTracker.get_instance()

    def test_direct_instances_are_independent(self, tracker: FileTracker, tmp_path):
        other = FileTracker()
        tracker.record_read(str(tmp_path / "a.py"), "x")
        assert other.get_snapshot(str(tmp_path / "a.py")) is None

    def test_write_lock_serializes_same_path(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "shared.py")
        active = 0
        peak = 0
        guard = threading.Lock()

        def worker():
            nonlocal active, peak
            with tracker.acquire_write_lock(path):
                with guard:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.01)
                with guard:
                    active -= 1

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert peak == 1

    def test_different_paths_do_not_block(self, tracker: FileTracker, tmp_path):
        with tracker.acquire_write_lock(str(tmp_path / "a.py")):
            acquired = threading.Event()

            def other():
                with tracker.acquire_write_lock(str(tmp_path / "b.py")):
                    acquired.set()

            t = threading.Thread(target=other)
            t.start()
            assert acquired.wait(timeout=2)
            t.join()

    def test_lock_released_on_exception(self, tracker: FileTracker, tmp_path):
        path = str(tmp_path / "a.py")
        with pytest.raises(RuntimeError):
            with tracker.acquire_write_lock(path):
                raise RuntimeError("boom")
        with tracker.acquire_write_lock(path):
            pass
