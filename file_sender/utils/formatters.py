"""Formatting utilities for transfer and log messages."""

from datetime import datetime


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human readable size string.
    """
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes // 1024}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes // (1024 * 1024)}MB"
    else:
        return f"{size_bytes // (1024 * 1024 * 1024)}GB"


def format_megabytes(size_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals."""
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ISO 8601 with the local UTC offset."""
    return dt.astimezone().isoformat(timespec='seconds')


def format_date(dt: datetime) -> str:
    """Format the date part used for archive and log directories.

    Args:
        dt: Datetime (or date) to format.

    Returns:
        Date string in YYYY-MM-DD form.
    """
    return dt.strftime('%Y-%m-%d')
