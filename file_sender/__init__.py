"""
File Sender - an unattended agent that uploads files dropped into a directory.

Files that stop changing are POSTed to an HTTP endpoint and then moved into a
dated archive tree. The agent rotates and compresses its own log file.
"""

__version__ = "1.0.0"

from .core.agent import FileSenderAgent
from .core.watcher import DirectoryWatcher
from .core.uploader import Uploader

__all__ = ["FileSenderAgent", "DirectoryWatcher", "Uploader"]
