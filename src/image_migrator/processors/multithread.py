"""Multithreaded worker pool - bounded admission on top of a thread pool."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from ..core import WorkerPool, get_logger


class WaitGroup:
    """Counter that lets one thread wait for a growing set of tasks."""

    def __init__(self) -> None:
        self._count = 0
        self._condition = threading.Condition()

    @property
    def count(self) -> int:
        with self._condition:
            return self._count

    def add(self, delta: int = 1) -> None:
        with self._condition:
            if self._count + delta < 0:
                raise ValueError("WaitGroup counter cannot go negative")
            self._count += delta
            if self._count == 0:
                self._condition.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the counter reaches zero. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout=timeout)


class BoundedWorkerPool(WorkerPool):
    """
    Runs at most ``max_workers`` tasks at once.

    ``submit`` takes a slot before handing the task to the executor, so the
    caller blocks while the pool is saturated instead of queueing unbounded
    work. The slot is given back and the wait group signalled in a
    ``finally`` block, whatever the task does.
    """

    def __init__(self, max_workers: int = 10, thread_name_prefix: str = "image-migrator"):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._slots = threading.BoundedSemaphore(max_workers)
        self._pending = WaitGroup()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._logger = get_logger("image-migrator.pool")

    @property
    def pending(self) -> int:
        return self._pending.count

    def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(f"Task {getattr(fn, '__name__', fn)} raised: {exc}", exc_info=True)
            raise
        finally:
            self._slots.release()
            self._pending.done()

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        self._slots.acquire()
        self._pending.add(1)
        try:
            return self._executor.submit(self._run, fn, *args)
        except BaseException:
            self._slots.release()
            self._pending.done()
            raise

    def drain(self) -> None:
        self._pending.wait()

    def shutdown(self) -> None:
        self.drain()
        self._executor.shutdown(wait=True)
