"""
Blob storage for uploaded .fit files on the local filesystem.

Files are opaque bytes addressed by a storage key such as
``fit-files/3f2a...-morning_ride.fit``. The key is what gets persisted on
the FitFile row; nothing else in the app knows about paths on disk.
"""
import logging
import re
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_PREFIX = "fit-files"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageNotFoundError(LookupError):
    """Raised when a storage key does not point at a stored blob."""


def _safe_name(name: str) -> str:
    """Reduce a client-supplied filename to something safe to put in a key."""
    base = Path(name).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "file.fit"


class LocalObjectStorage:
    """
    Stores blobs under a root directory.

    Usage:
        storage = LocalObjectStorage(Path("./uploads"))
        key = storage.store(data, "ride.fit")
        data = storage.fetch(key)
        storage.delete(key)
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def store(self, data: bytes, name: str) -> str:
        """Write ``data`` and return the new storage key."""
        key = f"{KEY_PREFIX}/{uuid.uuid4().hex}-{_safe_name(name)}"
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored %d bytes at %s", len(data), key)
        return key

    def fetch(self, key: str) -> bytes:
        """
        Read the blob stored under ``key``.

        Raises:
            StorageNotFoundError: if nothing is stored under that key.
        """
        path = self._path(key)
        if not path.is_file():
            raise StorageNotFoundError(f"Stored file not found: {key}")
        return path.read_bytes()

    def delete(self, key: str) -> None:
        """
        Remove the blob stored under ``key``.

        Raises:
            StorageNotFoundError: if nothing is stored under that key.
        """
        path = self._path(key)
        if not path.is_file():
            raise StorageNotFoundError(f"Stored file not found: {key}")
        path.unlink()
        logger.info("Deleted %s", key)

    def _path(self, key: str) -> Path:
        root = self.root.resolve()
        path = (root / key).resolve()
        # Keys must stay inside the storage root
        if root not in path.parents:
            raise StorageNotFoundError(f"Invalid storage key: {key}")
        return path
