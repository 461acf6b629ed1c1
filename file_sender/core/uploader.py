"""HTTP upload of a single file to the configured endpoint."""

import logging
import os
from datetime import datetime
from typing import Optional, Tuple

import click
import requests
from requests.auth import HTTPBasicAuth

from .exceptions import FileMissingError, UploadError
from .models import TransferStats, UploadResult
from ..utils.formatters import format_file_size


class Uploader:
    """Posts files as multipart/form-data with HTTP Basic authentication."""

    FIELD_NAME = "file"

    def __init__(self, endpoint: str, username: str, password: str,
                 stats: TransferStats, cert: Optional[Tuple[str, str]] = None,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """Initialize uploader.

        Args:
            endpoint: Full URL the files are POSTed to.
            username: Basic auth user name.
            password: Basic auth password.
            stats: Counters updated after each successful upload.
            cert: Optional (cert_file, key_file) client certificate pair.
            timeout: Request timeout in seconds. None waits indefinitely.
            session: Shared HTTP session. A new one is created if omitted.
        """
        self.endpoint = endpoint
        self.auth = HTTPBasicAuth(username, password)
        self.stats = stats
        self.cert = cert
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def upload(self, path: str) -> UploadResult:
        """Send one file.

        Args:
            path: File to upload.

        Returns:
            UploadResult describing the completed transfer.

        Raises:
            FileMissingError: If the file no longer exists.
            UploadError: On a transport failure or a non-200 response.
        """
        self.logger.info(f"Starting file transfer: {path}")
        name = os.path.basename(path)

        try:
            size = os.path.getsize(path)
            handle = open(path, 'rb')
        except FileNotFoundError:
            raise FileMissingError(f"File does not exist: {path}", path)
        except OSError as e:
            raise UploadError(f"Error opening the file {path}: {e}", path)

        with handle:
            files = {self.FIELD_NAME: (name, handle, 'application/octet-stream')}
            try:
                response = self.session.post(
                    self.endpoint,
                    files=files,
                    auth=self.auth,
                    cert=self.cert,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                raise UploadError(f"Error sending the request for {path}: {e}", path) from e

        if response.status_code != 200:
            body = response.text
            raise UploadError(
                f"Error receiving response from the server for {path}: "
                f"{response.status_code} {response.reason} - {body}",
                path,
                status_code=response.status_code,
                body=body,
            )

        self.logger.info(
            f"Successful connection: {self.endpoint} -POST- {response.status_code} {response.reason} "
            f"({name}, {format_file_size(size)})"
        )

        sent_at = datetime.now()
        snapshot = self.stats.record(name, size, sent_at)
        click.echo(TransferStats.summary_line(snapshot))

        return UploadResult(
            path=path,
            name=name,
            size=size,
            status_code=response.status_code,
            sent_at=sent_at,
        )

    def close(self) -> None:
        self.session.close()
