"""Factory classes for creating configured service instances."""

from typing import Any, Optional, TYPE_CHECKING

import boto3
from botocore.config import Config

from .config import MigrationConfig, ObjectStoreSettings
from .database import ConnectionPool, MySQLRecordSource, MySQLRecordUpdater
from .observability import StructuredLogger
from .protocols import (
    LoggerProtocol,
    RecordSource,
    RecordUpdater,
    S3ClientProtocol,
    WorkerPool,
)
from .services import (
    Base64ImageCodec,
    FilesystemLocalSink,
    MigrationDriver,
    MigrationTaskFactory,
    RecordMigrationService,
    S3RemoteSink,
)
from ..processors import BoundedWorkerPool, SerialWorkerPool

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "image-migrator", debug: bool = False) -> LoggerProtocol:
        """Create a configured structured logger."""
        return StructuredLogger(name, level="DEBUG" if debug else None)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(settings: ObjectStoreSettings, **kwargs: Any) -> "S3Client":
        """Create an S3 client for the configured endpoint and credentials."""
        addressing_style = "path" if settings.use_path_style_endpoint else "auto"
        session = boto3.Session()
        return session.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            region_name=settings.region,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            config=Config(s3={"addressing_style": addressing_style}),
            **kwargs,
        )


class WorkerPoolFactory:
    """Factory for the configured concurrency strategy."""

    @staticmethod
    def create_worker_pool(config: MigrationConfig) -> WorkerPool:
        if config.processor == "serial":
            return SerialWorkerPool()
        return BoundedWorkerPool(max_workers=config.concurrency)


class MigrationPipelineFactory:
    """Factory for creating the complete migration pipeline."""

    @staticmethod
    def create_connection_pool(config: MigrationConfig) -> ConnectionPool:
        # One connection per worker plus one for the paging query
        return ConnectionPool(config.database, max_connections=config.concurrency + 1)

    @staticmethod
    def create_driver(
        config: MigrationConfig,
        connection_pool: Optional[ConnectionPool] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        source: Optional[RecordSource] = None,
        updater: Optional[RecordUpdater] = None,
        worker_pool: Optional[WorkerPool] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> MigrationDriver:
        """Create a fully configured migration driver.

        Collaborators that are not supplied are built from ``config``. The
        database pool is only created when the source or updater is missing.
        """
        if logger is None:
            logger = LoggerFactory.create_logger(debug=config.debug)

        if source is None or updater is None:
            if connection_pool is None:
                connection_pool = MigrationPipelineFactory.create_connection_pool(config)
            if source is None:
                source = MySQLRecordSource(connection_pool, config.database)
            if updater is None:
                updater = MySQLRecordUpdater(connection_pool, config.database)

        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(config.object_store)

        if worker_pool is None:
            worker_pool = WorkerPoolFactory.create_worker_pool(config)

        local_sink = FilesystemLocalSink(config.output_dir)
        migration_service = RecordMigrationService(
            task_factory=MigrationTaskFactory(config, local_sink),
            codec=Base64ImageCodec(verify_images=config.verify_images),
            local_sink=local_sink,
            remote_sink=S3RemoteSink(s3_client, config.object_store),
            updater=updater,
            logger=logger,
        )

        return MigrationDriver(
            source=source,
            migration_service=migration_service,
            worker_pool=worker_pool,
            logger=logger,
            batch_size=config.batch_size,
            start_after=config.start_after,
        )
