"""Bucket/path blob storage on the local filesystem."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from pizzapos.config import STORAGE_ROOT
from pizzapos.errors import NotFound, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class BlobStore:
    """Opaque key-value blobs keyed by bucket name and relative path."""

    def __init__(self, root: str | Path = STORAGE_ROOT) -> None:
        self.root = Path(root)

    def _resolve(self, bucket: str, path: str) -> Path:
        if not bucket or "/" in bucket or bucket in {".", ".."}:
            raise ValidationError(f"Invalid bucket name: {bucket!r}")
        relative = PurePosixPath(path)
        if not path or relative.is_absolute() or ".." in relative.parts:
            raise ValidationError(f"Invalid blob path: {path!r}")
        return self.root / bucket / Path(*relative.parts)

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def upload(self, bucket: str, path: str, data: bytes, upsert: bool = False) -> str:
        """Store a blob and return its bucket-relative path."""
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise PersistenceError(f"{bucket}/{path} already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise PersistenceError(f"Upload of {bucket}/{path} failed: {exc}") from exc
        logger.info("blob_upload bucket=%s path=%s bytes=%d", bucket, path, len(data))
        return path

    def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise NotFound(f"{bucket}/{path} not found")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"Download of {bucket}/{path} failed: {exc}") from exc

    def delete(self, bucket: str, path: str) -> bool:
        """Remove a blob; False when nothing was stored at that key."""
        target = self._resolve(bucket, path)
        if not target.is_file():
            return False
        try:
            target.unlink()
        except OSError as exc:
            raise PersistenceError(f"Delete of {bucket}/{path} failed: {exc}") from exc
        logger.info("blob_delete bucket=%s path=%s", bucket, path)
        return True
