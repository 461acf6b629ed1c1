"""Bounded worker pool for file uploads."""

import logging
import queue
import threading
from typing import Callable, List, Optional


class WorkerPool:
    """Fixed number of worker threads pulling paths from one shared queue.

    At most ``num_workers`` paths are queued or in flight at any time;
    ``submit`` blocks until a slot frees up. A failing handler is logged and
    the worker moves on to the next path.
    """

    _STOP = object()

    def __init__(self, num_workers: int, handler: Callable[[str], None],
                 name: str = "sender"):
        """Initialize worker pool.

        Args:
            num_workers: Number of concurrent workers.
            handler: Called with each path, synchronously, by one worker.
            name: Prefix for worker thread names.
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self.num_workers = num_workers
        self.handler = handler
        self.name = name
        self.logger = logging.getLogger(__name__)
        self._queue: "queue.Queue" = queue.Queue()
        self._slots = threading.BoundedSemaphore(num_workers)
        self._stopping = threading.Event()
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        self.logger.info(f"Starting {self.num_workers} workers")
        for i in range(self.num_workers):
            thread = threading.Thread(
                target=self._work,
                name=f"{self.name}-{i + 1}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def submit(self, path: str, poll: float = 0.5) -> bool:
        """Queue ``path`` for a worker, blocking while all slots are taken.

        Returns:
            False if the pool stopped before a slot became free.
        """
        while not self._slots.acquire(timeout=poll):
            if self._stopping.is_set():
                return False
        if self._stopping.is_set():
            self._slots.release()
            return False
        self._queue.put(path)
        return True

    def stop(self) -> None:
        """Stop accepting work. In-flight handlers are not interrupted."""
        self._stopping.set()
        for _ in self._threads:
            self._queue.put(self._STOP)

    def join(self, timeout: Optional[float] = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def wait_idle(self) -> None:
        """Block until every submitted path has been handled."""
        self._queue.join()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._STOP:
                    return
                self.handler(item)
            except Exception:
                self.logger.exception(f"Error sending the file {item}")
            finally:
                if item is not self._STOP:
                    self._slots.release()
                self._queue.task_done()
