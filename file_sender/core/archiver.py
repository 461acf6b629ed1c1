"""Relocation of uploaded files into the dated archive tree."""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..utils.formatters import format_date


class ArchiveMover:
    """Moves sent files to ``<archive_root>/<YYYY-MM-DD>/``.

    An existing name is never overwritten: ``report.csv`` becomes
    ``report_1.csv``, ``report_2.csv`` and so on.
    """

    def __init__(self, archive_root: str, clock: Callable[[], datetime] = datetime.now):
        """Initialize archive mover.

        Args:
            archive_root: Base directory of the archive tree.
            clock: Source of the current date, replaceable in tests.
        """
        self.archive_root = Path(archive_root)
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def destination_dir(self) -> Path:
        return self.archive_root / format_date(self.clock())

    def archive(self, path: str) -> Optional[Path]:
        """Move ``path`` into today's archive directory.

        Returns:
            The archived path, or None if the move failed.
        """
        dest_dir = self.destination_dir()
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            dest_path = self._reserve_name(dest_dir, os.path.basename(path))
        except OSError as e:
            self.logger.error(f"Error creating archive directory {dest_dir}: {e}")
            return None

        try:
            shutil.move(path, dest_path)
        except (OSError, shutil.Error) as e:
            self.logger.error(f"Error moving file {path} to archive: {e}")
            self._drop_reservation(dest_path)
            return None

        self.logger.info(f"File moved to archive: {dest_path}")
        return dest_path

    @staticmethod
    def _reserve_name(dest_dir: Path, name: str) -> Path:
        """Create an empty placeholder under the first free name and return it.

        Creation with O_EXCL fails if the name exists, so two movers never
        pick the same name.
        """
        stem, ext = os.path.splitext(name)
        candidate = dest_dir / name
        counter = 1
        while True:
            try:
                fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                candidate = dest_dir / f"{stem}_{counter}{ext}"
                counter += 1
                continue
            os.close(fd)
            return candidate

    def _drop_reservation(self, dest_path: Path) -> None:
        try:
            if dest_path.exists() and dest_path.stat().st_size == 0:
                dest_path.unlink()
        except OSError as e:
            self.logger.warning(f"Could not remove archive placeholder {dest_path}: {e}")
