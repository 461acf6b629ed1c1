"""Core file transfer pipeline."""

from .agent import FileSenderAgent
from .archiver import ArchiveMover
from .dispatcher import WorkerPool
from .models import AgentSettings, TrackedFile, TransferStats, UploadResult
from .tracker import StabilityTracker
from .uploader import Uploader
from .watcher import DirectoryWatcher

__all__ = [
    "FileSenderAgent", "ArchiveMover", "WorkerPool", "AgentSettings", "TrackedFile",
    "TransferStats", "UploadResult", "StabilityTracker", "Uploader", "DirectoryWatcher",
]
