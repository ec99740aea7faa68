"""Tests for fake implementations."""

import pytest

from image_migrator.core.models import Record
from image_migrator.testing.fakes import (
    FakeLogger,
    FakeRecordStore,
    FakeS3Client,
    create_test_image,
    encode_image,
    setup_test_record_store,
)


class TestFakeS3Client:
    """Tests for FakeS3Client."""

    def test_put_object_stores_body(self):
        """Test uploads land in the bucket."""
        client = FakeS3Client()
        client.create_bucket("media")

        response = client.put_object(
            Bucket="media", Key="a.png", Body=b"x", ContentType="image/png", ACL="public-read"
        )

        assert response["ResponseMetadata"]["HTTPStatusCode"] == 200
        stored = client.get_bucket("media").get_object("a.png")
        assert stored.body == b"x"
        assert stored.size == 1
        assert stored.acl == "public-read"

    def test_put_object_unknown_bucket(self):
        """Test uploads to a missing bucket fail."""
        with pytest.raises(Exception, match="not found"):
            FakeS3Client().put_object(Bucket="nope", Key="a.png", Body=b"x")

    def test_fail_on_keys(self):
        """Test targeted key failures."""
        client = FakeS3Client()
        client.create_bucket("media")
        client.fail_on_keys(["bad.png"])

        client.put_object(Bucket="media", Key="good.png", Body=b"x")
        with pytest.raises(Exception):
            client.put_object(Bucket="media", Key="bad.png", Body=b"x")
        assert client.operation_count == 2


class TestFakeRecordStore:
    """Tests for FakeRecordStore."""

    def test_next_page_filters_and_orders(self):
        """Test only eligible records above the watermark are returned, ascending."""
        store = FakeRecordStore(
            [
                Record(id=5, payload="p"),
                Record(id=2, payload="p"),
                Record(id=3, payload=""),
                Record(id=9, payload="p"),
            ]
        )

        assert [r.id for r in store.next_page(0, 10)] == [2, 5, 9]
        assert [r.id for r in store.next_page(2, 1)] == [5]
        assert store.next_page(9, 10) == []
        assert store.page_requests == [(0, 10), (2, 1), (9, 10)]

    def test_page_failure(self):
        """Test an injected failure on a chosen call."""
        store = setup_test_record_store(3)
        store.set_page_failure(ConnectionError("gone"), on_page=2)

        store.next_page(0, 2)
        with pytest.raises(ConnectionError):
            store.next_page(2, 2)

    def test_update_records_address(self):
        """Test updates are recorded and applied."""
        store = setup_test_record_store(2)
        store.update(1, "https://example.com/1.png")

        assert store.updates == {1: "https://example.com/1.png"}
        assert store.records[1].resolved_address == "https://example.com/1.png"

    def test_update_failure(self):
        """Test injected update failures."""
        store = setup_test_record_store(1)
        store.fail_update_ids.add(1)

        with pytest.raises(Exception, match="Simulated update failure"):
            store.update(1, "https://example.com/1.png")
        assert store.update_calls == [1]


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_logs_by_level(self):
        """Test entries are captured and filtered."""
        logger = FakeLogger()
        logger.info("hello", count=1)
        logger.error("bad")

        assert len(logger.get_logs()) == 2
        assert logger.get_logs("INFO")[0]["count"] == 1
        logger.clear_logs()
        assert logger.get_logs() == []


def test_encode_image_is_base64_text():
    """Test encoded images are ASCII text."""
    encoded = encode_image(create_test_image())
    assert isinstance(encoded, str)
    assert encoded.isascii()
