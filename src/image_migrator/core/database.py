"""MySQL-backed record source and updater."""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

import pymysql
import pymysql.cursors

from .config import DatabaseSettings
from .exceptions import FatalSourceError, UpdateError, with_error_handling
from .logging_config import get_logger
from .models import Record
from .protocols import RecordSource, RecordUpdater

logger = get_logger("image-migrator.database")


class ConnectionPool:
    """Thread-safe pool of PyMySQL connections.

    PyMySQL connections must not be shared between threads, so the record
    source and every worker borrow their own connection for the duration of
    a single statement.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        max_connections: int = 11,
        connect: Callable[..., Any] = pymysql.connect,
    ):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.settings = settings
        self.max_connections = max_connections
        self._connect = connect
        self._idle: List[Any] = []
        self._created = 0
        self._available = threading.Condition()

    @property
    def created_connections(self) -> int:
        return self._created

    def _connection_params(self) -> dict:
        return {
            "host": self.settings.host,
            "port": self.settings.port,
            "user": self.settings.username,
            "password": self.settings.password,
            "database": self.settings.database,
            "charset": "utf8mb4",
            "autocommit": True,
            "cursorclass": pymysql.cursors.DictCursor,
        }

    def _acquire(self) -> Any:
        # Idle first, then a new connection if under the cap, else wait
        with self._available:
            while True:
                if self._idle:
                    return self._idle.pop()
                if self._created < self.max_connections:
                    self._created += 1
                    break
                self._available.wait()

        try:
            conn = self._connect(**self._connection_params())
        except Exception:
            with self._available:
                self._created -= 1
                self._available.notify()
            raise
        logger.debug(f"Created new MySQL connection ({self._created} total)")
        return conn

    def _release(self, conn: Any, healthy: bool) -> None:
        keep = healthy and getattr(conn, "open", True)
        with self._available:
            if keep:
                self._idle.append(conn)
            else:
                self._created -= 1
            self._available.notify()
        if keep:
            return
        try:
            conn.close()
        except pymysql.MySQLError as exc:
            logger.warning(f"Error closing broken connection: {exc}")

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a live connection for the duration of the block."""
        conn = self._acquire()
        healthy = True
        try:
            conn.ping(reconnect=True)
            yield conn
        except pymysql.err.OperationalError:
            healthy = False
            raise
        finally:
            self._release(conn, healthy)

    def ping(self) -> None:
        """Verify that the database is reachable.

        Raises:
            FatalSourceError: If no connection can be established
        """
        try:
            with self.connection():
                pass
        except Exception as exc:
            raise FatalSourceError(f"Error connecting to database: {exc}") from exc
        logger.info("Database connection successfully established")

    def close_all(self) -> None:
        """Close every idle connection held by the pool."""
        with self._available:
            idle, self._idle = self._idle, []
            self._created -= len(idle)
            self._available.notify_all()
        for conn in idle:
            try:
                conn.close()
            except pymysql.MySQLError as exc:
                logger.warning(f"Error closing pooled connection: {exc}")


def _payload_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("ascii", errors="replace")
    return str(value)


class MySQLRecordSource(RecordSource):
    """Pages through eligible rows in ascending primary key order."""

    def __init__(self, pool: ConnectionPool, settings: Optional[DatabaseSettings] = None):
        self._pool = pool
        self._settings = settings or pool.settings
        s = self._settings
        self._query = (
            f"SELECT `{s.id_column}`, `{s.payload_column}` FROM `{s.table}` "
            f"WHERE `{s.payload_column}` != '' AND `{s.id_column}` > %s "
            f"ORDER BY `{s.id_column}` ASC LIMIT %s"
        )

    @property
    def query(self) -> str:
        return self._query

    @with_error_handling(FatalSourceError)
    def next_page(self, after_id: int, limit: int) -> List[Record]:
        with self._pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(self._query, (after_id, limit))
                rows = cursor.fetchall()

        records = [
            Record(
                id=row[self._settings.id_column],
                payload=_payload_text(row[self._settings.payload_column]),
            )
            for row in rows
        ]
        logger.debug(f"Fetched {len(records)} records after id {after_id}")
        return records


class MySQLRecordUpdater(RecordUpdater):
    """Stores the resolved address on the owning row."""

    def __init__(self, pool: ConnectionPool, settings: Optional[DatabaseSettings] = None):
        self._pool = pool
        self._settings = settings or pool.settings
        s = self._settings
        self._statement = (
            f"UPDATE `{s.table}` SET `{s.address_column}` = %s "
            f"WHERE `{s.id_column}` = %s"
        )

    @property
    def statement(self) -> str:
        return self._statement

    @with_error_handling(UpdateError)
    def update(self, record_id: int, address: str) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(self._statement, (address, record_id))
