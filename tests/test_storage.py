"""Tests for filesystem blob storage."""

import pytest

from pizzapos.errors import NotFound, PersistenceError, ValidationError


def test_upload_then_download(blobs):
    path = blobs.upload("sales", "2025/7/sales-2025-07-27.json", b"{}")

    assert path == "2025/7/sales-2025-07-27.json"
    assert blobs.exists("sales", path)
    assert blobs.download("sales", path) == b"{}"


def test_upload_without_upsert_refuses_to_overwrite(blobs):
    blobs.upload("sales", "a.json", b"one")

    with pytest.raises(PersistenceError):
        blobs.upload("sales", "a.json", b"two")

    assert blobs.download("sales", "a.json") == b"one"


def test_upsert_overwrites(blobs):
    blobs.upload("sales", "a.json", b"one")
    blobs.upload("sales", "a.json", b"two", upsert=True)

    assert blobs.download("sales", "a.json") == b"two"


def test_buckets_are_separate(blobs):
    blobs.upload("sales", "a.json", b"one")

    assert not blobs.exists("listings", "a.json")


def test_download_missing_raises_not_found(blobs):
    with pytest.raises(NotFound):
        blobs.download("sales", "nothing.json")


def test_delete(blobs):
    blobs.upload("listings", "x.json", b"data")

    assert blobs.delete("listings", "x.json") is True
    assert blobs.delete("listings", "x.json") is False
    assert not blobs.exists("listings", "x.json")


@pytest.mark.parametrize("path", ["", "../escape.json", "/abs.json", "a/../../b.json"])
def test_paths_outside_the_bucket_are_rejected(blobs, path):
    with pytest.raises(ValidationError):
        blobs.upload("sales", path, b"x")


@pytest.mark.parametrize("bucket", ["", "..", "a/b"])
def test_invalid_bucket_names_are_rejected(blobs, bucket):
    with pytest.raises(ValidationError):
        blobs.exists(bucket, "a.json")
