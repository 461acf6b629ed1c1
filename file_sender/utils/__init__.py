"""Utility modules for the file sender."""

from .formatters import format_file_size, format_megabytes, format_timestamp, format_date

__all__ = ["format_file_size", "format_megabytes", "format_timestamp", "format_date"]
