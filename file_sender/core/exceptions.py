"""Exceptions raised by the file transfer pipeline."""

from typing import Optional


class FileSenderError(Exception):
    """Base class for file sender errors."""


class TransferError(FileSenderError):
    """A file could not be delivered to the upload endpoint."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FileMissingError(TransferError):
    """The file disappeared before it could be opened for upload."""


class UploadError(TransferError):
    """The endpoint rejected the upload or could not be reached."""

    def __init__(self, message: str, path: Optional[str] = None,
                 status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, path)
        self.status_code = status_code
        self.body = body


class RotationError(FileSenderError):
    """The active log file could not be moved or compressed."""
