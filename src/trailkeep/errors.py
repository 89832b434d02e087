"""Error taxonomy for the file-backed collection stores.

Corrupt collection files are not reported through these types unless the
store was configured with ``recover_corrupt=False``; by default they are
backed up and replaced by an empty collection (see ``engine.FileStore``).
"""

from __future__ import annotations

from pathlib import Path


class FileStoreError(Exception):
    """Base class for every error raised by a collection store."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class EncodingFailedError(FileStoreError):
    """Raised when records cannot be serialized to JSON."""


class DecodingFailedError(FileStoreError):
    """Raised when persisted records cannot be turned back into entities."""


class StorageIOError(FileStoreError):
    """Raised when the filesystem rejects a read or a write."""


class ReadFailedError(StorageIOError):
    pass


class WriteFailedError(StorageIOError):
    pass


class RecordNotFoundError(FileStoreError, KeyError):
    """Raised by entity stores when an operation names a record that does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
