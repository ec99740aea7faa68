"""Core utilities and shared components for the image migrator."""

from .config import (
    DatabaseSettings,
    MigrationConfig,
    ObjectStoreSettings,
    load_config,
)
from .logging_config import apply_log_level, get_logger, setup_logger
from .exceptions import (
    ImageMigratorError,
    ConfigurationError,
    FatalSourceError,
    MigrationStepError,
    DecodeError,
    LocalWriteError,
    UploadError,
    UpdateError,
    with_error_handling,
)
from .models import (
    MigrationResult,
    MigrationTask,
    PipelineStep,
    Record,
    StepOutcome,
)
from .protocols import (
    ImageCodec,
    LocalSink,
    RecordSource,
    RecordUpdater,
    RemoteSink,
    WorkerPool,
)

__all__ = [
    "DatabaseSettings",
    "MigrationConfig",
    "ObjectStoreSettings",
    "load_config",
    "setup_logger",
    "apply_log_level",
    "get_logger",
    "ImageMigratorError",
    "ConfigurationError",
    "FatalSourceError",
    "MigrationStepError",
    "DecodeError",
    "LocalWriteError",
    "UploadError",
    "UpdateError",
    "with_error_handling",
    "MigrationResult",
    "MigrationTask",
    "PipelineStep",
    "Record",
    "StepOutcome",
    "ImageCodec",
    "LocalSink",
    "RecordSource",
    "RecordUpdater",
    "RemoteSink",
    "WorkerPool",
]
