"""
Blob storage for proof images.

All code that needs storage should take a BlobStorage handle rather than
touching the filesystem:
    from bingo.storage.blob import BlobStorage, get_storage

- store() is on the critical path of submission creation: failures raise
  DependencyError.
- delete() is best-effort: it returns False instead of raising.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from bingo.core import config
from bingo.core.errors import DependencyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    path: str
    public_url: str


class BlobStorage:
    def store(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError


class LocalBlobStorage(BlobStorage):
    """Writes blobs under ``root`` and serves them from ``public_prefix`` (mounted at /static)."""

    def __init__(self, root: Path, public_prefix: str):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def _resolve(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if self.root.resolve() not in full.parents:
            raise ValueError(f"path escapes storage root: {path}")
        return full

    def store(self, data: bytes, content_type: str, path_hint: str) -> StoredBlob:
        try:
            full = self._resolve(path_hint)
            full.parent.mkdir(parents=True, exist_ok=True)
            # "x" mode: never overwrite an existing proof
            with open(full, "xb") as fh:
                fh.write(data)
        except (OSError, ValueError) as e:
            logger.error("[STORAGE] store failed path=%s: %r", path_hint, e)
            raise DependencyError("Failed to upload image. Please try again.") from e

        logger.info("[STORAGE] stored path=%s bytes=%d type=%s", path_hint, len(data), content_type)
        return StoredBlob(path=path_hint, public_url=f"{self.public_prefix}/{path_hint}")

    def delete(self, path: str) -> bool:
        try:
            os.remove(self._resolve(path))
        except (OSError, ValueError) as e:
            logger.warning("[STORAGE] delete failed path=%s: %r", path, e)
            return False
        logger.info("[STORAGE] deleted path=%s", path)
        return True


_storage = None


def get_storage() -> BlobStorage:
    """FastAPI dependency returning the shared local storage (overridden in tests)."""
    global _storage
    if _storage is None:
        _storage = LocalBlobStorage(config.UPLOAD_DIR, config.PUBLIC_UPLOAD_URL)
    return _storage
