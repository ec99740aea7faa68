"""Unit tests for factory classes."""

from unittest.mock import MagicMock, patch

from image_migrator.core.config import DatabaseSettings, MigrationConfig, ObjectStoreSettings
from image_migrator.core.database import MySQLRecordSource, MySQLRecordUpdater
from image_migrator.core.factories import (
    MigrationPipelineFactory,
    S3ClientFactory,
    WorkerPoolFactory,
)
from image_migrator.core.services import MigrationDriver
from image_migrator.processors import BoundedWorkerPool, SerialWorkerPool
from image_migrator.testing.fakes import FakeLogger, FakeRecordStore, FakeS3Client


def make_config(tmp_path, **kwargs):
    return MigrationConfig(
        database=DatabaseSettings(database="app"),
        object_store=ObjectStoreSettings(
            bucket="media",
            endpoint="minio:9000",
            region="us-east-1",
            access_key_id="key",
            secret_access_key="secret",
            use_path_style_endpoint=True,
        ),
        output_dir=str(tmp_path / "images"),
        **kwargs,
    )


class TestS3ClientFactory:
    """Tests for S3ClientFactory."""

    def test_create_s3_client_passes_settings(self, tmp_path):
        """Test endpoint, credentials and addressing style are applied."""
        settings = make_config(tmp_path).object_store
        with patch("image_migrator.core.factories.boto3.Session") as mock_session:
            S3ClientFactory.create_s3_client(settings)

        kwargs = mock_session.return_value.client.call_args.kwargs
        assert mock_session.return_value.client.call_args.args == ("s3",)
        assert kwargs["endpoint_url"] == "https://minio:9000"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["aws_access_key_id"] == "key"
        assert kwargs["aws_secret_access_key"] == "secret"
        assert kwargs["config"].s3 == {"addressing_style": "path"}

    def test_virtual_addressing_when_path_style_disabled(self):
        """Test path-style is off unless requested."""
        settings = ObjectStoreSettings(bucket="media")
        with patch("image_migrator.core.factories.boto3.Session") as mock_session:
            S3ClientFactory.create_s3_client(settings)

        kwargs = mock_session.return_value.client.call_args.kwargs
        assert kwargs["endpoint_url"] is None
        assert kwargs["config"].s3 == {"addressing_style": "auto"}


class TestWorkerPoolFactory:
    """Tests for WorkerPoolFactory."""

    def test_multithread_pool_uses_concurrency(self, tmp_path):
        """Test the default strategy is a bounded thread pool."""
        pool = WorkerPoolFactory.create_worker_pool(make_config(tmp_path, concurrency=4))
        assert isinstance(pool, BoundedWorkerPool)
        assert pool.max_workers == 4
        pool.shutdown()

    def test_serial_pool(self, tmp_path):
        """Test the serial strategy."""
        pool = WorkerPoolFactory.create_worker_pool(make_config(tmp_path, processor="serial"))
        assert isinstance(pool, SerialWorkerPool)


class TestMigrationPipelineFactory:
    """Tests for MigrationPipelineFactory."""

    def test_connection_pool_sized_for_workers(self, tmp_path):
        """Test one connection per worker plus the paging query."""
        pool = MigrationPipelineFactory.create_connection_pool(make_config(tmp_path, concurrency=6))
        assert pool.max_connections == 7

    def test_create_driver_with_fakes(self, tmp_path):
        """Test a driver can be assembled from injected collaborators."""
        config = make_config(tmp_path, batch_size=50, start_after=10)
        store = FakeRecordStore()
        driver = MigrationPipelineFactory.create_driver(
            config,
            s3_client=FakeS3Client(),
            source=store,
            updater=store,
            worker_pool=SerialWorkerPool(),
            logger=FakeLogger(),
        )

        assert isinstance(driver, MigrationDriver)
        assert driver.watermark == 10
        assert (tmp_path / "images").is_dir()

    def test_create_driver_builds_mysql_collaborators(self, tmp_path):
        """Test MySQL source and updater share the supplied connection pool."""
        config = make_config(tmp_path)
        connection_pool = MagicMock()
        connection_pool.settings = config.database

        driver = MigrationPipelineFactory.create_driver(
            config,
            connection_pool=connection_pool,
            s3_client=FakeS3Client(),
            worker_pool=SerialWorkerPool(),
            logger=FakeLogger(),
        )

        assert isinstance(driver._source, MySQLRecordSource)
        assert isinstance(driver._migration_service._updater, MySQLRecordUpdater)
