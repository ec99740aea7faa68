"""Custom exceptions and error handling utilities for the image migrator."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Tuple, Type, TypeVar

from .logging_config import get_logger


class ImageMigratorError(Exception):
    """Base exception for all image migrator errors."""


class ConfigurationError(ImageMigratorError):
    """Error raised for invalid configuration options."""


class FatalSourceError(ImageMigratorError):
    """Error raised when the record source cannot be paged. Aborts the run."""


class MigrationStepError(ImageMigratorError):
    """Base class for failures confined to a single record's pipeline."""


class DecodeError(MigrationStepError):
    """Error raised when a payload is not a valid encoded image."""


class LocalWriteError(MigrationStepError):
    """Error raised when the local copy of an image cannot be written."""


class UploadError(MigrationStepError):
    """Error raised when an image cannot be uploaded to object storage."""


class UpdateError(MigrationStepError):
    """Error raised when the record cannot be pointed at its new address."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(
    error_cls: Type[ImageMigratorError],
    *catch: Type[BaseException],
) -> Callable[[F], F]:
    """Wrap a function so that foreign exceptions surface as ``error_cls``.

    Errors that already belong to the migrator taxonomy pass through
    untouched. Anything listed in ``catch`` (every ``Exception`` when
    nothing is listed) is re-raised as ``error_cls`` chained to the
    original cause.
    """
    catch_types: Tuple[Type[BaseException], ...] = catch or (Exception,)

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except ImageMigratorError:
                raise
            except catch_types as exc:
                logger = get_logger("image-migrator.errors")
                logger.debug(f"{func.__qualname__} failed: {exc}", exc_info=True)
                raise error_cls(f"{func.__name__} failed: {exc}") from exc

        return wrapper  # type: ignore[return-value]

    return decorator
