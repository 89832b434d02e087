"""Contract between domain entities and their on-disk records."""

from __future__ import annotations

import uuid
from typing import Protocol, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

EntityT = TypeVar("EntityT")
RecordT = TypeVar("RecordT", bound="StoreRecord")


class StoreRecord(BaseModel):
    """Flat, serializable form of one entity as it appears in a collection file.

    Field names are written in camelCase. Unknown fields written by newer
    versions are ignored on read, and optional fields missing from older
    files fall back to their defaults.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class RecordMapping(Protocol[EntityT, RecordT]):
    """Converts one entity type to and from its record type.

    Implementations must satisfy ``to_entity(to_record(e)) == e`` for every
    representable entity, including embedded child lists and their order.
    """

    record_type: type[RecordT]

    def to_record(self, entity: EntityT) -> RecordT:
        ...

    def to_entity(self, record: RecordT) -> EntityT:
        ...

    def key(self, record: RecordT) -> uuid.UUID:
        """Return the record's natural key as the engine's comparison key."""
        ...
