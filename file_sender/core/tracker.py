"""Stability bookkeeping for files waiting in the source directory."""

import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from .models import TrackedFile


class StabilityTracker:
    """Remembers when each file was first seen and when it last changed.

    A file is ready once its size and modification time have stayed the same
    for ``stability_seconds``. The tracker does no I/O; the watcher feeds it
    observations. All access goes through one lock, held only for the update.
    """

    def __init__(self, stability_seconds: float = 2.0,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the tracker.

        Args:
            stability_seconds: How long a file must stay unchanged to be ready.
            clock: Monotonic time source, replaceable in tests.
        """
        self.stability_seconds = stability_seconds
        self.clock = clock
        self._files: Dict[str, TrackedFile] = {}
        self._lock = threading.Lock()

    def observe(self, path: str, size: int, mtime: float) -> bool:
        """Record an observation of ``path``.

        Returns:
            True if the path was not tracked before.
        """
        now = self.clock()
        with self._lock:
            tracked = self._files.get(path)
            if tracked is None:
                self._files[path] = TrackedFile(
                    path=path,
                    first_seen=now,
                    size=size,
                    mtime=mtime,
                    changed_at=now,
                )
                return True

            if tracked.size != size or tracked.mtime != mtime:
                tracked.size = size
                tracked.mtime = mtime
                tracked.changed_at = now
            return False

    def is_ready(self, path: str) -> bool:
        """Check whether ``path`` has been unchanged for the stability window."""
        now = self.clock()
        with self._lock:
            tracked = self._files.get(path)
            if tracked is None:
                return False
            return now - tracked.changed_at >= self.stability_seconds

    def claim(self, path: str) -> bool:
        """Mark a ready file as handed to a worker.

        Returns:
            False if the file is unknown or already being uploaded.
        """
        with self._lock:
            tracked = self._files.get(path)
            if tracked is None or tracked.in_flight:
                return False
            tracked.in_flight = True
            return True

    def release(self, path: str) -> None:
        """Make ``path`` eligible for dispatch again after a worker finishes."""
        with self._lock:
            tracked = self._files.get(path)
            if tracked is not None:
                tracked.in_flight = False

    def forget_missing(self, present: Iterable[str]) -> List[str]:
        """Drop every tracked path that is not in ``present``.

        Returns:
            The paths that were removed.
        """
        present = set(present)
        with self._lock:
            removed = [path for path in self._files if path not in present]
            for path in removed:
                del self._files[path]
        return removed

    def get(self, path: str) -> Optional[TrackedFile]:
        with self._lock:
            tracked = self._files.get(path)
            if tracked is None:
                return None
            return TrackedFile(**vars(tracked))

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._files

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)
