"""Service implementations for the record migration pipeline."""

import base64
import binascii
import io
import re
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from PIL import Image, UnidentifiedImageError

from .config import MigrationConfig, ObjectStoreSettings
from .exceptions import (
    DecodeError,
    FatalSourceError,
    LocalWriteError,
    MigrationStepError,
    UpdateError,
    UploadError,
    with_error_handling,
)
from .models import MigrationResult, MigrationTask, PipelineStep, Record, StepOutcome
from .observability import LogContext
from .protocols import (
    ImageCodec,
    LocalSink,
    LoggerProtocol,
    RecordSource,
    RecordUpdater,
    RemoteSink,
    S3ClientProtocol,
    WorkerPool,
)

_DATA_URI = re.compile(r"^data:[^;,]*;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

STEP_ERRORS = {
    PipelineStep.DECODE: DecodeError,
    PipelineStep.LOCAL_WRITE: LocalWriteError,
    PipelineStep.UPLOAD: UploadError,
    PipelineStep.UPDATE: UpdateError,
}


class Base64ImageCodec(ImageCodec):
    """Decodes standard base64 payloads, optionally checking them with Pillow."""

    def __init__(self, verify_images: bool = False):
        self._verify_images = verify_images

    @with_error_handling(DecodeError, binascii.Error, ValueError)
    def decode(self, payload: str) -> bytes:
        text = _DATA_URI.sub("", payload.strip(), count=1)
        text = _WHITESPACE.sub("", text)
        if not text:
            raise DecodeError("payload is empty")

        data = base64.b64decode(text, validate=True)
        if not data:
            raise DecodeError("payload decoded to zero bytes")

        if self._verify_images:
            self._verify(data)
        return data

    @staticmethod
    def _verify(data: bytes) -> None:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.verify()
        except (UnidentifiedImageError, SyntaxError, OSError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"payload is not a readable image: {exc}") from exc


class FilesystemLocalSink(LocalSink):
    """Writes image copies below a fixed output directory."""

    def __init__(self, output_dir: str):
        self._output_dir = Path(output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def path_for(self, filename: str) -> str:
        return str(self._output_dir / filename)

    @with_error_handling(LocalWriteError, OSError)
    def write(self, path: str, data: bytes) -> str:
        Path(path).write_bytes(data)
        return path


class S3RemoteSink(RemoteSink):
    """Uploads images with a fixed content type and access policy."""

    def __init__(self, s3_client: S3ClientProtocol, settings: ObjectStoreSettings):
        self._s3_client = s3_client
        self._settings = settings

    @with_error_handling(UploadError)
    def put(self, key: str, data: bytes) -> str:
        params = {
            "Bucket": self._settings.bucket,
            "Key": key,
            "Body": data,
            "ContentType": self._settings.content_type,
        }
        if self._settings.acl:
            params["ACL"] = self._settings.acl

        self._s3_client.put_object(**params)
        return self._settings.object_url(key)


class MigrationTaskFactory:
    """Derives storage locations for a record."""

    def __init__(self, config: MigrationConfig, local_sink: LocalSink):
        self._config = config
        self._local_sink = local_sink

    def create_task(self, record: Record) -> MigrationTask:
        filename = self._config.filename_for(record.id)
        return MigrationTask(
            record_id=record.id,
            payload=record.payload,
            local_path=self._local_sink.path_for(filename),
            object_key=self._config.object_store.object_key(filename),
        )


class RecordMigrationService:
    """Runs decode → local write → upload → update for one record.

    Every step yields a StepOutcome and the chain stops at the first failure.
    Nothing is undone when a later step fails: an upload failure leaves the
    local file in place, and an update failure leaves the uploaded object
    without a database reference.
    """

    def __init__(
        self,
        task_factory: MigrationTaskFactory,
        codec: ImageCodec,
        local_sink: LocalSink,
        remote_sink: RemoteSink,
        updater: RecordUpdater,
        logger: LoggerProtocol,
    ):
        self._task_factory = task_factory
        self._codec = codec
        self._local_sink = local_sink
        self._remote_sink = remote_sink
        self._updater = updater
        self._logger = logger

    def _attempt(
        self, step: PipelineStep, func: Callable[..., Any], *args: Any
    ) -> StepOutcome:
        try:
            return StepOutcome.success(step, func(*args))
        except MigrationStepError as exc:
            return StepOutcome.failure(step, exc)
        except Exception as exc:  # noqa: BLE001
            error = STEP_ERRORS[step](f"{step.value} failed: {exc}")
            error.__cause__ = exc
            return StepOutcome.failure(step, error)

    def process(self, record: Record) -> MigrationResult:
        """Migrate a single record; never raises for per-record failures."""
        start_time = time.time()
        task = self._task_factory.create_task(record)
        result = MigrationResult(
            record_id=task.record_id,
            local_path=task.local_path,
            object_key=task.object_key,
        )
        log_context = LogContext.for_record(task.record_id, "record_migration_service")

        outcome = self._attempt(PipelineStep.DECODE, self._codec.decode, task.payload)
        if outcome.ok:
            data = outcome.value
            outcome = self._attempt(
                PipelineStep.LOCAL_WRITE, self._local_sink.write, task.local_path, data
            )
        if outcome.ok:
            self._logger.debug(
                f"Image saved to: {task.local_path}",
                log_context.with_operation(PipelineStep.LOCAL_WRITE.value),
            )
            outcome = self._attempt(
                PipelineStep.UPLOAD, self._remote_sink.put, task.object_key, data
            )
        if outcome.ok:
            result.address = outcome.value
            self._logger.debug(
                f"Uploaded image to {task.object_key}",
                log_context.with_operation(PipelineStep.UPLOAD.value),
            )
            outcome = self._attempt(
                PipelineStep.UPDATE, self._updater.update, task.record_id, result.address
            )

        result.processing_time = time.time() - start_time

        if not outcome.ok:
            result.failed_step = outcome.step
            result.error = str(outcome.error)
            self._logger.error(
                "Record migration failed",
                log_context.with_metadata(step=outcome.step.value, error=result.error),
            )
            return result

        result.success = True
        self._logger.info(
            "Record migrated",
            log_context,
            address=result.address,
            processing_time_ms=round(result.processing_time * 1000, 2),
        )
        return result


class MigrationDriver:
    """Pages through the record source and feeds every record to the pool."""

    def __init__(
        self,
        source: RecordSource,
        migration_service: RecordMigrationService,
        worker_pool: WorkerPool,
        logger: LoggerProtocol,
        batch_size: int = 1000,
        start_after: int = 0,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._source = source
        self._migration_service = migration_service
        self._worker_pool = worker_pool
        self._logger = logger
        self._batch_size = batch_size
        self._watermark = start_after
        self._pages_fetched = 0
        self._dispatched_count = 0

    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    @property
    def dispatched_count(self) -> int:
        return self._dispatched_count

    def _fetch_page(self) -> List[Record]:
        try:
            page = self._source.next_page(self._watermark, self._batch_size)
        except FatalSourceError:
            raise
        except Exception as exc:
            raise FatalSourceError(f"Error fetching records: {exc}") from exc
        self._pages_fetched += 1
        return page

    def _run_task(self, record: Record) -> Optional[MigrationResult]:
        try:
            return self._migration_service.process(record)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                f"Unexpected error migrating record {record.id}: {exc}", exc_info=True
            )
            return None

    def _dispatch_page(self, page: List[Record]) -> None:
        for record in page:
            if record.id <= self._watermark:
                raise FatalSourceError(
                    f"Record source returned id {record.id} at or below "
                    f"watermark {self._watermark}"
                )
            self._worker_pool.submit(self._run_task, record)
            self._dispatched_count += 1
            # Advances on dispatch, not completion: failed records are not revisited
            self._watermark = record.id

    def run(self) -> None:
        """Migrate every eligible record, then wait for in-flight work."""
        context = LogContext(operation="migrate", component="migration_driver")
        self._logger.info(
            "Starting migration",
            context,
            batch_size=self._batch_size,
            start_after=self._watermark,
        )
        try:
            while True:
                page = self._fetch_page()
                if not page:
                    break
                self._logger.info(
                    f"Fetched page {self._pages_fetched} with {len(page)} records",
                    context,
                    after_id=self._watermark,
                )
                self._dispatch_page(page)
        except FatalSourceError as exc:
            self._logger.error(
                f"Aborting migration: {exc}", context, watermark=self._watermark
            )
            raise
        finally:
            self._logger.info(
                "Waiting for in-flight records to finish",
                context,
                dispatched=self._dispatched_count,
            )
            self._worker_pool.drain()

        self._logger.info(
            "All eligible records dispatched and finished",
            context,
            pages=self._pages_fetched,
            dispatched=self._dispatched_count,
            watermark=self._watermark,
        )
