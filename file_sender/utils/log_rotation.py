"""Size and date based rotation of the agent's own log file.

The active log lives at ``<log_dir>/<log_file>``. When it grows past the size
limit, or when its last entry belongs to an earlier day, it is moved to
``<log_dir>/<YYYY-MM-DD>/``, packed into ``<YYYY-MM-DD>-<n>.tar.gz`` and a fresh
active file is opened.
"""

import logging
import os
import tarfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import RotationError
from .formatters import format_date


DEFAULT_MAX_BYTES = 2 * 1024 * 1024
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'
TIMESTAMP_LENGTH = 19
TAIL_BYTES = 8192


class LogRotator:
    """Decides when the active log must rotate and performs the rotation."""

    def __init__(self, log_dir: str, log_file: str, max_bytes: int = DEFAULT_MAX_BYTES):
        self.log_dir = Path(log_dir)
        self.log_file = log_file
        self.max_bytes = max_bytes

    @property
    def active_path(self) -> Path:
        return self.log_dir / self.log_file

    def size_exceeded(self) -> bool:
        try:
            return self.active_path.stat().st_size > self.max_bytes
        except FileNotFoundError:
            return False

    def read_last_lines(self, count: int = 2) -> List[str]:
        """Return up to ``count`` trailing non-empty lines of the active log."""
        try:
            with open(self.active_path, 'rb') as f:
                f.seek(0, os.SEEK_END)
                size = f.tell()
                f.seek(max(0, size - TAIL_BYTES))
                tail = f.read().decode('utf-8', errors='replace')
        except FileNotFoundError:
            return []

        lines = [line for line in tail.splitlines() if line.strip()]
        return lines[-count:]

    def last_entry_date(self) -> Optional[date]:
        """Date of the most recent timestamped line in the active log.

        Looks at the last two lines so a trailing continuation line (such as
        the end of a traceback) does not hide the entry it belongs to.
        """
        for line in reversed(self.read_last_lines(2)):
            try:
                return datetime.strptime(line[:TIMESTAMP_LENGTH], TIMESTAMP_FORMAT).date()
            except ValueError:
                continue
        return None

    def due(self, today: Optional[date] = None) -> Optional[date]:
        """Work out whether the active log needs rotating.

        Returns:
            The date the archive should be named for, or None. A log whose last
            entry is from an earlier day is archived under that day.
        """
        today = today or date.today()
        last_date = self.last_entry_date()
        if last_date is not None and last_date < today:
            return last_date
        if self.size_exceeded():
            return today
        return None

    def archive_path(self, log_date: date) -> Path:
        """First free ``<date>-<n>.tar.gz`` in the dated directory, n >= 1."""
        day = format_date(log_date)
        day_dir = self.log_dir / day
        n = 1
        while (day_dir / f"{day}-{n}.tar.gz").exists():
            n += 1
        return day_dir / f"{day}-{n}.tar.gz"

    def rotate(self, log_date: date) -> Path:
        """Move, compress and remove the active log.

        The caller must have closed any stream writing to the active file.

        Returns:
            Path of the created archive.

        Raises:
            RotationError: If the move or the compression fails. The log is
                put back in place so a later check can retry.
        """
        day_dir = self.log_dir / format_date(log_date)
        moved_path = day_dir / self.log_file

        try:
            day_dir.mkdir(parents=True, exist_ok=True)
            os.replace(self.active_path, moved_path)
        except OSError as e:
            raise RotationError(f"Error moving the log file {self.active_path}: {e}") from e

        archive = self.archive_path(log_date)
        try:
            with tarfile.open(archive, 'w:gz') as tar:
                tar.add(str(moved_path), arcname=self.log_file)
        except (OSError, tarfile.TarError) as e:
            message = f"Error archiving logs to {archive}: {e}"
            try:
                self._restore(moved_path, archive)
            except OSError as restore_error:
                message += f"; {moved_path} could not be restored: {restore_error}"
            raise RotationError(message) from e

        try:
            moved_path.unlink()
        except OSError as e:
            raise RotationError(
                f"Logs archived to {archive} but {moved_path} could not be removed: {e}"
            ) from e

        return archive

    def _restore(self, moved_path: Path, archive: Path) -> None:
        if archive.exists():
            archive.unlink()
        if not self.active_path.exists():
            os.replace(moved_path, self.active_path)


class RotatingLogHandler(logging.FileHandler):
    """File handler that rotates the active log on size and day boundaries.

    Size is checked before and after each record is written. A record dated
    later than the previous one also closes out the previous day. After a
    failed rotation, write-time checks pause until ``check_rotation`` runs.
    """

    def __init__(self, rotator: LogRotator, encoding: str = 'utf-8'):
        self.rotator = rotator
        self._last_written: Optional[date] = None
        self._rotation_failed = False
        self._reporting = False
        self._report_logger = logging.getLogger(__name__)
        rotator.log_dir.mkdir(parents=True, exist_ok=True)
        super().__init__(str(rotator.active_path), mode='a', encoding=encoding)
        self._last_written = rotator.last_entry_date()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            record_date = datetime.fromtimestamp(record.created).date()
            if self._write_checks_enabled():
                if self._last_written is not None and record_date > self._last_written:
                    self._rotate(self._last_written)
                elif self.rotator.size_exceeded():
                    self._rotate(record_date)

            super().emit(record)
            self._last_written = record_date

            if self._write_checks_enabled() and self.rotator.size_exceeded():
                self._rotate(record_date)
        except Exception:
            self.handleError(record)

    def check_rotation(self, today: Optional[date] = None) -> Optional[Path]:
        """Periodic check: rotate if the log is too big or from an earlier day."""
        self.acquire()
        try:
            self._rotation_failed = False
            if self.stream is not None:
                self.stream.flush()
            log_date = self.rotator.due(today)
            if log_date is None:
                return None
            return self._rotate(log_date)
        finally:
            self.release()

    def _write_checks_enabled(self) -> bool:
        return not self._rotation_failed and not self._reporting

    def _rotate(self, log_date: date) -> Optional[Path]:
        if self.stream:
            self.stream.close()
            self.stream = None

        archive = None
        error = None
        try:
            archive = self.rotator.rotate(log_date)
        except RotationError as e:
            error = e
            self._rotation_failed = True
        finally:
            self.stream = self._open()

        if error is None:
            self._last_written = None
            self._report(logging.INFO, f"Logs successfully archived to: {archive}")
        else:
            self._report(logging.ERROR, str(error))
        return archive

    def _report(self, level: int, message: str) -> None:
        self._reporting = True
        try:
            self._report_logger.log(level, message)
        finally:
            self._reporting = False


class RotationScheduler:
    """Background thread that runs the periodic rotation check."""

    def __init__(self, handler: RotatingLogHandler, interval: float = 60.0):
        self.handler = handler
        self.interval = interval
        self.logger = logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="log-rotation", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.handler.check_rotation()
            except Exception:
                self.logger.exception("Periodic log rotation check failed")


def rotate_on_startup(rotator: LogRotator, today: Optional[date] = None) -> List[str]:
    """Rotate a leftover log before it is reopened.

    Returns:
        Messages describing what happened, to be logged once logging is set up.
    """
    log_date = rotator.due(today)
    if log_date is None:
        return []
    try:
        archive = rotator.rotate(log_date)
    except RotationError as e:
        return [f"Startup log rotation failed: {e}"]
    return [f"Logs successfully archived to: {archive}"]
