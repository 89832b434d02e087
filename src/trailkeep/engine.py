from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Generic

from .canonical import encode_collection
from .errors import DecodingFailedError, EncodingFailedError, ReadFailedError, WriteFailedError
from .mapping import EntityT, RecordMapping, RecordT
from .settings import StoreSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Collection locking helpers
# ---------------------------------------------------------------------------

_COLLECTION_LOCKS: dict[Path, threading.RLock] = {}
_COLLECTION_LOCKS_GUARD = threading.Lock()


def _collection_lock(path: Path) -> threading.RLock:
    """Return the process-wide lock for one collection file.

    Every ``FileStore`` bound to the same resolved path shares this lock, so
    the read-modify-write cycle of one store can never interleave with a
    write from another store or thread on the same file. Nothing here
    protects against a second process writing the same file.
    """
    with _COLLECTION_LOCKS_GUARD:
        lock = _COLLECTION_LOCKS.get(path)
        if lock is None:
            lock = threading.RLock()
            _COLLECTION_LOCKS[path] = lock
        return lock


@contextmanager
def _locked_collection(path: Path) -> Iterator[None]:
    with _collection_lock(path):
        yield


def _atomic_write_bytes(path: Path, content: bytes) -> None:
    """Write *content* to *path* atomically.

    Writes to a temporary file in the same directory, then renames
    (``os.replace``) into place. Readers see either the previous file or
    the new one, never a truncated mix.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as tmp_handle:
            tmp_handle.write(content)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        # Clean up the temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def corrupted_backup_path(path: Path, when: datetime) -> Path:
    """Return the sibling path an unreadable collection file is moved to."""
    stamp = when.astimezone(UTC).strftime("%Y%m%dT%H%M%S%fZ")
    return path.with_name(f"{path.name}.corrupted.{stamp}")


def _dedupe_by_key(records: Iterable[RecordT], key: Callable[[RecordT], uuid.UUID]) -> list[RecordT]:
    """Collapse records sharing a key: the later record replaces the earlier one in place."""
    positions: dict[uuid.UUID, int] = {}
    result: list[RecordT] = []
    for record in records:
        record_key = key(record)
        index = positions.get(record_key)
        if index is None:
            positions[record_key] = len(result)
            result.append(record)
        else:
            result[index] = record
    return result


# ---------------------------------------------------------------------------
# FileStore
# ---------------------------------------------------------------------------


class FileStore(Generic[EntityT, RecordT]):
    """Crash-safe CRUD over one JSON collection file.

    The file holds a single JSON array of records of one entity type. Every
    mutation reads the whole collection, changes it in memory and writes the
    whole collection back through an atomic temp-file-then-rename. All
    operations on one path are serialized by a shared in-process lock.

    A missing or empty file is an empty collection. A file that cannot be
    decoded is moved aside to a timestamped ``.corrupted.`` sibling and the
    collection starts over empty, unless ``recover_corrupt`` is false, in
    which case ``DecodingFailedError`` is raised and the file is left alone.
    """

    def __init__(
        self,
        root: Path,
        file_name: str,
        mapping: RecordMapping[EntityT, RecordT],
        *,
        compact_json: bool = False,
        json_indent: int = 2,
        recover_corrupt: bool = True,
    ) -> None:
        if not file_name or Path(file_name).name != file_name:
            raise ValueError(f"file_name must be a bare file name, got: {file_name!r}")
        self.root = Path(root)
        self.file_name = file_name
        self.mapping = mapping
        self.compact_json = compact_json
        self.json_indent = json_indent
        self.recover_corrupt = recover_corrupt

    @classmethod
    def from_settings(
        cls,
        settings: StoreSettings,
        file_name: str,
        mapping: RecordMapping[EntityT, RecordT],
    ) -> "FileStore[EntityT, RecordT]":
        return cls(settings.data_path, file_name, mapping, **settings.engine_options())

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def file_path(self) -> Path:
        """Path of the collection file. It may not exist yet."""
        return self.root / self.file_name

    @property
    def file_exists(self) -> bool:
        return self.file_path.is_file()

    @property
    def file_size(self) -> int | None:
        """Size of the collection file in bytes, or ``None`` if it does not exist."""
        try:
            return self.file_path.stat().st_size
        except OSError:
            return None

    def entity_key(self, entity: EntityT) -> uuid.UUID:
        """Return the comparison key the engine uses for ``entity``."""
        return self.mapping.key(self._to_record(entity))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_all(self) -> list[EntityT]:
        """Return every entity in file order."""
        with self._locked():
            return [self._to_entity(record) for record in self._load_records()]

    def get(self, key: uuid.UUID) -> EntityT | None:
        """Return the entity stored under ``key``, or ``None``."""
        with self._locked():
            for record in self._load_records():
                if self.mapping.key(record) == key:
                    return self._to_entity(record)
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_or_update(self, entity: EntityT) -> None:
        """Replace the record with the same key, or append a new one."""
        with self._locked():
            records = self._load_records()
            record = self._to_record(entity)
            record_key = self.mapping.key(record)
            for index, existing in enumerate(records):
                if self.mapping.key(existing) == record_key:
                    records[index] = record
                    logger.debug("Updating %s in %s", record_key, self.file_name)
                    break
            else:
                records.append(record)
                logger.debug("Appending %s to %s", record_key, self.file_name)
            self._persist(records)

    def save_or_update_many(self, entities: Iterable[EntityT]) -> None:
        """Upsert several entities with a single write."""
        with self._locked():
            records = self._load_records()
            records.extend(self._to_record(entity) for entity in entities)
            self._persist(records)

    def delete(self, entity: EntityT) -> None:
        """Remove every record sharing ``entity``'s key. Absent keys are a no-op."""
        self.delete_key(self.entity_key(entity))

    def delete_key(self, key: uuid.UUID) -> None:
        with self._locked():
            records = self._load_records()
            remaining = [record for record in records if self.mapping.key(record) != key]
            if len(remaining) == len(records):
                logger.debug("Delete of %s in %s matched nothing", key, self.file_name)
                return
            self._persist(remaining)

    def save_all(self, entities: Iterable[EntityT]) -> None:
        """Replace the whole collection with ``entities``, in order."""
        records = [self._to_record(entity) for entity in entities]
        with self._locked():
            self._persist(records)

    def delete_all(self) -> None:
        """Persist an empty collection. The file remains and contains ``[]``."""
        with self._locked():
            self._persist([])

    def update(self, transform: Callable[[list[EntityT]], Sequence[EntityT]]) -> list[EntityT]:
        """Rewrite the collection through ``transform`` with one load and one atomic write.

        ``transform`` receives every entity in file order and returns the new
        collection content. Use this for changes spanning several records,
        such as moving a "primary" flag from one record to another. Nothing
        is written when the transformed collection equals the stored one.

        Returns:
            The entities as returned by ``transform``.
        """
        with self._locked():
            records = self._load_records()
            entities = [self._to_entity(record) for record in records]
            updated = list(transform(entities))
            updated_records = [self._to_record(entity) for entity in updated]
            if updated_records == records:
                logger.debug("Update of %s changed nothing", self.file_name)
                return updated
            self._persist(updated_records)
            return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _locked(self):
        return _locked_collection(self.file_path.resolve())

    def _to_record(self, entity: EntityT) -> RecordT:
        try:
            return self.mapping.to_record(entity)
        except (TypeError, ValueError) as exc:
            raise EncodingFailedError(
                f"failed to map entity for {self.file_name}: {exc}", path=self.file_path
            ) from exc

    def _to_entity(self, record: RecordT) -> EntityT:
        try:
            return self.mapping.to_entity(record)
        except (TypeError, ValueError, KeyError) as exc:
            raise DecodingFailedError(
                f"failed to map record from {self.file_name}: {exc}", path=self.file_path
            ) from exc

    def _load_records(self) -> list[RecordT]:
        path = self.file_path
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise ReadFailedError(f"failed to read collection {path}: {exc}", path=path) from exc

        if not raw.strip():
            return []

        try:
            payload = json.loads(raw.decode("utf-8"))
            if not isinstance(payload, list):
                raise ValueError(f"top-level value must be an array, got {type(payload).__name__}")
            return [self.mapping.record_type.model_validate(item) for item in payload]
        except (ValueError, RecursionError) as exc:
            # UnicodeDecodeError, JSONDecodeError and pydantic's ValidationError are ValueErrors;
            # deeply nested arrays exhaust the decoder with RecursionError.
            return self._recover_corrupt(path, exc)

    def _recover_corrupt(self, path: Path, exc: Exception) -> list[RecordT]:
        if not self.recover_corrupt:
            raise DecodingFailedError(f"collection {path} is not a valid record array: {exc}", path=path) from exc

        backup = corrupted_backup_path(path, datetime.now(UTC))
        try:
            path.rename(backup)
        except OSError as move_exc:
            logger.warning("Could not back up corrupt collection %s: %s", path, move_exc)
            try:
                path.unlink(missing_ok=True)
            except OSError as unlink_exc:
                logger.error("Could not remove corrupt collection %s: %s", path, unlink_exc)
            else:
                logger.warning("Discarded unreadable collection %s (%s); starting empty", path, exc)
            return []

        logger.warning(
            "Collection %s was unreadable (%s); moved to %s and starting empty",
            path,
            exc,
            backup,
        )
        return []

    def _persist(self, records: Sequence[RecordT]) -> None:
        path = self.file_path
        unique = _dedupe_by_key(records, self.mapping.key)
        try:
            payload = encode_collection(unique, compact=self.compact_json, indent=self.json_indent)
        except (TypeError, ValueError) as exc:
            raise EncodingFailedError(f"failed to encode collection {path}: {exc}", path=path) from exc
        try:
            _atomic_write_bytes(path, payload)
        except OSError as exc:
            raise WriteFailedError(f"failed to write collection {path}: {exc}", path=path) from exc
        logger.debug("Wrote %d record(s) to %s", len(unique), path)
