import binascii

import pytest

from image_migrator.core.exceptions import (
    ConfigurationError,
    DecodeError,
    FatalSourceError,
    ImageMigratorError,
    LocalWriteError,
    MigrationStepError,
    UpdateError,
    UploadError,
    with_error_handling,
)


@with_error_handling(UploadError)
def _fail_func() -> None:
    raise ValueError("boom")


@with_error_handling(DecodeError, binascii.Error)
def _fail_with_unlisted() -> None:
    raise KeyError("not listed")


@with_error_handling(UpdateError)
def _fail_with_taxonomy_error() -> None:
    raise FatalSourceError("already classified")


def test_with_error_handling_converts_to_target_error() -> None:
    with pytest.raises(UploadError, match="_fail_func failed: boom") as exc_info:
        _fail_func()
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_with_error_handling_only_converts_listed_types() -> None:
    with pytest.raises(KeyError):
        _fail_with_unlisted()


def test_with_error_handling_passes_taxonomy_errors_through() -> None:
    with pytest.raises(FatalSourceError):
        _fail_with_taxonomy_error()


def test_with_error_handling_preserves_return_value() -> None:
    @with_error_handling(UploadError)
    def ok() -> str:
        return "done"

    assert ok() == "done"
    assert ok.__name__ == "ok"


@pytest.mark.parametrize(
    "error_cls", [DecodeError, LocalWriteError, UploadError, UpdateError]
)
def test_step_errors_are_migration_step_errors(error_cls) -> None:
    assert issubclass(error_cls, MigrationStepError)
    assert issubclass(error_cls, ImageMigratorError)


@pytest.mark.parametrize("error_cls", [FatalSourceError, ConfigurationError])
def test_fatal_errors_are_not_step_errors(error_cls) -> None:
    assert not issubclass(error_cls, MigrationStepError)
    assert issubclass(error_cls, ImageMigratorError)
