"""Serial worker pool - runs each task inline, one at a time."""

from concurrent.futures import Future
from typing import Any, Callable

from ..core import WorkerPool, get_logger


class SerialWorkerPool(WorkerPool):
    """
    Runs every submitted task in the caller's thread before returning.

    Equivalent to a pool with a single slot: there is never more than one
    task in flight, so ``drain`` has nothing to wait for. Useful for
    debugging a migration without thread interleaving in the logs.
    """

    max_workers = 1

    def __init__(self) -> None:
        self._logger = get_logger("image-migrator.pool")

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        future: "Future[Any]" = Future()
        try:
            future.set_result(fn(*args))
        except Exception as exc:  # noqa: BLE001
            self._logger.error(f"Task {getattr(fn, '__name__', fn)} raised: {exc}", exc_info=True)
            future.set_exception(exc)
        return future

    def drain(self) -> None:
        return None
