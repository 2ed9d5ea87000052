"""Content snapshots and per-file write locks for cascade_edit.

Stores the content of each file as it was last read or written, so callers
can tell whether a file changed on disk since the proposer saw it, and
serializes concurrent applies to the same path.

Usage:
    from cascade_edit.file_tracker import FileTracker

    tracker = FileTracker.get_instance()
    tracker.record_read("/path/to/file.py", content)
    with tracker.acquire_write_lock("/path/to/file.py"):
        ...  # read, resolve, write
        tracker.record_write("/path/to/file.py", new_content)
"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger("cascade_edit.file_tracker")


class FileTracker:
    """Tracks file snapshots and hands out per-file write locks.

    The resolver is pure and can run concurrently; the tracker is what keeps
    two applies against the same file from interleaving.
    """

    _instance: FileTracker | None = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(self) -> None:
        self._snapshots: dict[str, str] = {}  # normalized path -> content
        self._locks: dict[str, threading.Lock] = {}
        self._meta_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> FileTracker:
        """Return the singleton FileTracker instance, creating it if necessary."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.debug("FileTracker singleton created")
        return cls._instance

    def record_read(self, file_path: str, content: str) -> None:
        """Store the content the caller just read from *file_path*."""
        file_path = os.path.normpath(file_path)
        with self._meta_lock:
            self._snapshots[file_path] = content
        logger.debug("Recorded read: file=%s chars=%d", file_path, len(content))

    def record_write(self, file_path: str, content: str) -> None:
        """Store the content the caller just wrote to *file_path*."""
        file_path = os.path.normpath(file_path)
        with self._meta_lock:
            self._snapshots[file_path] = content
        logger.debug("Recorded write: file=%s chars=%d", file_path, len(content))

    def get_snapshot(self, file_path: str) -> str | None:
        """Return the stored content for *file_path*, or None if never seen."""
        return self._snapshots.get(os.path.normpath(file_path))

    def has_changed_since_read(self, file_path: str, current_content: str) -> bool:
        """True if *current_content* differs from the stored snapshot.

        A file that was never read has nothing to compare against and counts
        as unchanged.
        """
        stored = self.get_snapshot(file_path)
        return stored is not None and stored != current_content

    def invalidate(self, file_path: str) -> None:
        """Drop the snapshot for *file_path*."""
        file_path = os.path.normpath(file_path)
        with self._meta_lock:
            if self._snapshots.pop(file_path, None) is not None:
                logger.debug("Invalidated snapshot: file=%s", file_path)

    def clear(self) -> None:
        """Drop every snapshot."""
        with self._meta_lock:
            self._snapshots.clear()
        logger.debug("Cleared all snapshots")

    @contextmanager
    def acquire_write_lock(self, file_path: str) -> Iterator[None]:
        """Context manager that holds a per-file lock for a read-resolve-write cycle.

        Args:
            file_path: Absolute path to the file to lock.

        Yields:
            None once the lock is acquired.
        """
        file_path = os.path.normpath(file_path)

        with self._meta_lock:
            if file_path not in self._locks:
                self._locks[file_path] = threading.Lock()
            lock = self._locks[file_path]

        logger.debug("Acquiring write lock: file=%s", file_path)
        lock.acquire()
        try:
            logger.debug("Write lock acquired: file=%s", file_path)
            yield
        finally:
            lock.release()
            logger.debug("Write lock released: file=%s", file_path)
