"""Main file transfer coordinator."""

import logging
import os
import threading
from typing import Optional

import requests

from .archiver import ArchiveMover
from .dispatcher import WorkerPool
from .exceptions import TransferError
from .models import AgentSettings, TransferStats
from .tracker import StabilityTracker
from .uploader import Uploader
from .watcher import DirectoryWatcher


class FileSenderAgent:
    """Wires the watcher, worker pool, uploader and archive mover together."""

    def __init__(self, settings: AgentSettings, session: Optional[requests.Session] = None):
        """Initialize the agent.

        Args:
            settings: Resolved agent settings.
            session: Optional HTTP session shared by all workers.
        """
        self.settings = settings
        self.logger = logging.getLogger(__name__)
        self.stop_event = threading.Event()

        self.tracker = StabilityTracker(stability_seconds=settings.stability_seconds)
        self.stats = TransferStats()
        self.uploader = Uploader(
            endpoint=settings.endpoint,
            username=settings.username,
            password=settings.password,
            stats=self.stats,
            cert=self._client_cert(),
            timeout=settings.timeout_seconds,
            session=session,
        )
        self.archiver = ArchiveMover(settings.archive_dir)
        self.pool = WorkerPool(settings.num_workers, self.process_file)
        self.watcher = DirectoryWatcher(
            settings.send_dir,
            self.tracker,
            self.pool.submit,
            poll_interval=settings.poll_interval,
        )

    def _client_cert(self):
        """Client certificate pair, when HTTPS is on and both files exist."""
        if not self.settings.use_https:
            return None
        cert_file, key_file = self.settings.cert_file, self.settings.key_file
        if not cert_file or not key_file:
            return None
        missing = [path for path in (cert_file, key_file) if not os.path.isfile(path)]
        if missing:
            self.logger.warning(f"Client certificate files not found, sending without them: {missing}")
            return None
        return (cert_file, key_file)

    def process_file(self, path: str) -> None:
        """Upload one file and archive it on success. Runs on a worker thread.

        The tracker claim is dropped only while the file is still in the
        source directory; an archived file stays claimed until the next poll
        forgets it.
        """
        archived = None
        try:
            self.uploader.upload(path)
            archived = self.archiver.archive(path)
        except TransferError as e:
            self.logger.error(f"Error sending the file: {e}")
        finally:
            if archived is None:
                self.tracker.release(path)

    def start(self) -> None:
        self.pool.start()

    def run(self) -> None:
        """Start the workers and poll the source directory until stopped."""
        self.start()
        self.watcher.run(self.stop_event)

    def stop(self) -> None:
        """Stop polling. In-flight uploads are left to finish or be abandoned."""
        self.stop_event.set()
        self.pool.stop()
        self.uploader.close()
        snapshot = self.stats.snapshot()
        self.logger.info(
            f"Files sent this session: {snapshot.total_files_sent}, bytes: {snapshot.total_bytes_sent}"
        )
