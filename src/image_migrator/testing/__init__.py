"""Testing utilities and fakes for the image migrator."""

from .fakes import (
    FakeS3Client,
    FakeLogger,
    FakeRecordStore,
    StoredObject,
    FakeBucket,
    create_test_image,
    encode_image,
    setup_test_record_store,
)

__all__ = [
    "FakeS3Client",
    "FakeLogger",
    "FakeRecordStore",
    "StoredObject",
    "FakeBucket",
    "create_test_image",
    "encode_image",
    "setup_test_record_store",
]
