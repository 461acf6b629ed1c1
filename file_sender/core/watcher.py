"""Source directory polling for the file sender."""

import logging
import os
import threading
from typing import Callable, List, Optional

from .tracker import StabilityTracker


class DirectoryWatcher:
    """Polls the source directory and submits files that have stopped changing."""

    def __init__(self, source_dir: str, tracker: StabilityTracker,
                 submit: Callable[[str], bool], poll_interval: float = 1.0):
        """Initialize directory watcher.

        Args:
            source_dir: Directory the producer drops files into.
            tracker: Stability bookkeeping shared with the workers.
            submit: Hands a ready path to the worker pool. May block; returns
                False if the path was not accepted.
            poll_interval: Seconds between directory listings.
        """
        self.source_dir = os.path.abspath(source_dir)
        self.tracker = tracker
        self.submit = submit
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(__name__)

    def run(self, stop_event: threading.Event) -> None:
        """Poll until ``stop_event`` is set."""
        self.logger.info(f"Starting to monitor the folder: {self.source_dir}")
        while not stop_event.is_set():
            self.poll_once()
            stop_event.wait(self.poll_interval)
        self.logger.info(f"Stopped monitoring the folder: {self.source_dir}")

    def poll_once(self) -> List[str]:
        """Run one detection cycle.

        Returns:
            Paths submitted for upload during this cycle.
        """
        entries = self._list_candidates()
        if entries is None:
            return []

        submitted = []
        present = []
        for path, size, mtime in entries:
            present.append(path)

            if self.tracker.observe(path, size, mtime):
                self.logger.info(f"New file detected: {path}")

            if not self.tracker.is_ready(path):
                self.logger.debug(f"The file {path} is not yet ready for sending")
                continue

            if not self.tracker.claim(path):
                # Already queued or being uploaded
                continue

            self.logger.info(
                f"The file {path} has not changed for {self.tracker.stability_seconds:g} seconds. Sending..."
            )
            if self.submit(path):
                submitted.append(path)
            else:
                self.tracker.release(path)

        for path in self.tracker.forget_missing(present):
            self.logger.info(f"The file has been removed from tracking: {path}")

        return submitted

    def _list_candidates(self) -> Optional[List[tuple]]:
        """List non-directory entries as (path, size, mtime) tuples.

        Returns None when the directory cannot be read.
        """
        candidates = []
        try:
            with os.scandir(self.source_dir) as it:
                for entry in it:
                    try:
                        if entry.is_dir():
                            continue
                        entry_stat = entry.stat()
                    except OSError as e:
                        # Vanished between listing and stat
                        self.logger.debug(f"Skipping {entry.path}: {e}")
                        continue
                    candidates.append((entry.path, entry_stat.st_size, entry_stat.st_mtime))
        except OSError as e:
            self.logger.error(f"Error reading the directory {self.source_dir}: {e}")
            return None

        return candidates
