"""Data models for the file transfer pipeline."""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..utils.formatters import format_megabytes, format_timestamp


@dataclass
class TrackedFile:
    """A file observed in the source directory."""
    path: str
    first_seen: float
    size: int
    mtime: float
    changed_at: float
    in_flight: bool = False


@dataclass
class UploadResult:
    """Outcome of a successful upload."""
    path: str
    name: str
    size: int
    status_code: int
    sent_at: datetime


@dataclass
class AgentSettings:
    """Resolved settings consumed by the transfer agent."""
    endpoint: str
    username: str
    password: str
    send_dir: str
    archive_dir: str
    log_dir: str
    log_file: str
    use_https: bool = False
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    timeout_seconds: Optional[float] = None
    num_workers: int = 8
    poll_interval: float = 1.0
    stability_seconds: float = 2.0
    max_log_bytes: int = 2 * 1024 * 1024
    rotation_check_interval: float = 60.0
    log_level: str = "INFO"


@dataclass
class TransferSnapshot:
    """Point-in-time copy of the transfer counters."""
    total_files_sent: int
    total_bytes_sent: int
    last_file_name: Optional[str]
    last_sent_at: Optional[datetime]


class TransferStats:
    """Process-wide transfer counters, updated after each successful upload."""

    def __init__(self):
        self._lock = threading.Lock()
        self._files = 0
        self._bytes = 0
        self._last_name: Optional[str] = None
        self._last_time: Optional[datetime] = None

    def record(self, name: str, size: int, sent_at: Optional[datetime] = None) -> TransferSnapshot:
        """Count one sent file and return the counters after the update."""
        with self._lock:
            self._files += 1
            self._bytes += size
            self._last_name = name
            self._last_time = sent_at or datetime.now()
            return self._snapshot()

    def snapshot(self) -> TransferSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> TransferSnapshot:
        return TransferSnapshot(
            total_files_sent=self._files,
            total_bytes_sent=self._bytes,
            last_file_name=self._last_name,
            last_sent_at=self._last_time,
        )

    @staticmethod
    def summary_line(snapshot: TransferSnapshot) -> str:
        """Render the one-line progress summary printed after each upload."""
        sent_at = format_timestamp(snapshot.last_sent_at) if snapshot.last_sent_at else "-"
        return (
            f"File successfully sent: {snapshot.last_file_name} | "
            f"Number of files sent: {snapshot.total_files_sent} | "
            f"Total size: {format_megabytes(snapshot.total_bytes_sent)} | "
            f"Last file: {snapshot.last_file_name} at {sent_at}"
        )
