"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import Record


class S3ClientProtocol(Protocol):
    """Protocol for S3 client operations."""

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        """Put object to S3."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class RecordSource(ABC):
    """Paginated read access to migratable records."""

    @abstractmethod
    def next_page(self, after_id: int, limit: int) -> List[Record]:
        """Return up to ``limit`` eligible records with ``id > after_id``, ascending.

        An empty list means there is nothing left to migrate.
        """
        ...


class ImageCodec(ABC):
    """Turns a transport-encoded payload into raw image bytes."""

    @abstractmethod
    def decode(self, payload: str) -> bytes:
        """Decode a payload. Raises DecodeError on malformed input."""
        ...


class LocalSink(ABC):
    """Persists raw bytes on the local filesystem."""

    @abstractmethod
    def path_for(self, filename: str) -> str:
        """Return where ``filename`` would be written."""
        ...

    @abstractmethod
    def write(self, path: str, data: bytes) -> str:
        """Write ``data`` to ``path`` and return the path written."""
        ...


class RemoteSink(ABC):
    """Uploads raw bytes to object storage."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> str:
        """Upload ``data`` under ``key`` and return its resolvable address."""
        ...


class RecordUpdater(ABC):
    """Writes a resolved address back to its record."""

    @abstractmethod
    def update(self, record_id: int, address: str) -> None:
        """Point the record at ``address``."""
        ...


class WorkerPool(ABC):
    """Bounded executor for per-record pipelines."""

    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args: Any) -> "Optional[Future[Any]]":
        """Start ``fn(*args)``, blocking while every slot is busy."""
        ...

    @abstractmethod
    def drain(self) -> None:
        """Block until every submitted task has finished."""
        ...

    def shutdown(self) -> None:
        """Drain and release any resources held by the pool."""
        self.drain()

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.shutdown()
        return False
