"""Shared data models for the image migrator."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from .exceptions import MigrationStepError


class Record(BaseModel):
    """A row that may carry an embedded image."""

    id: int
    payload: str = ""
    resolved_address: Optional[str] = None

    @property
    def eligible(self) -> bool:
        """A record is a migration candidate iff its payload is non-empty."""
        return bool(self.payload)


class MigrationTask(BaseModel):
    """Everything one worker slot needs to migrate a single record."""

    record_id: int
    payload: str
    local_path: str
    object_key: str


class PipelineStep(str, Enum):
    """The ordered steps of a record's pipeline."""

    DECODE = "decode"
    LOCAL_WRITE = "local_write"
    UPLOAD = "upload"
    UPDATE = "update"


@dataclass(frozen=True)
class StepOutcome:
    """Tagged success or failure value returned by a pipeline step."""

    step: PipelineStep
    ok: bool
    value: Any = None
    error: Optional[MigrationStepError] = None

    @classmethod
    def success(cls, step: PipelineStep, value: Any = None) -> "StepOutcome":
        return cls(step=step, ok=True, value=value)

    @classmethod
    def failure(cls, step: PipelineStep, error: MigrationStepError) -> "StepOutcome":
        return cls(step=step, ok=False, error=error)


class MigrationResult(BaseModel):
    """Result of migrating a single record."""

    record_id: int
    success: bool = False
    failed_step: Optional[PipelineStep] = None
    error: str = ""
    local_path: str = ""
    object_key: str = ""
    address: str = ""
    processing_time: float = 0.0
