from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

from ..engine import FileStore
from ..mapping import EntityT
from ..models import utc_now
from ..settings import StoreSettings

StoreT = TypeVar("StoreT", bound="CollectionStore[Any]")

SortKey = Callable[[Any], Any]


def timestamp_or_distant_past(value: datetime | None) -> float:
    """Sort helper: missing timestamps order before every real one."""
    return value.timestamp() if value is not None else float("-inf")


class CollectionStore(Generic[EntityT]):
    """Entity-specific view over one ``FileStore``.

    Wraps the engine instead of extending it: reads go through the engine
    and are then ordered in memory with ``sort_key``; writes are passed
    through unchanged. Subclasses add filtered views and convenience
    operations on top of the loaded collection.
    """

    FILE_NAME: ClassVar[str]

    def __init__(
        self,
        engine: FileStore[EntityT, Any],
        *,
        sort_key: SortKey | None = None,
        reverse: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.engine = engine
        self._sort_key = sort_key
        self._reverse = reverse
        self._clock = clock

    @classmethod
    def from_settings(cls: type[StoreT], settings: StoreSettings, **kwargs: Any) -> StoreT:
        return cls(settings.data_path, **settings.engine_options(), **kwargs)

    @property
    def file_path(self) -> Path:
        return self.engine.file_path

    def load_all(self) -> list[EntityT]:
        entities = self.engine.load_all()
        if self._sort_key is None:
            return entities
        return sorted(entities, key=self._sort_key, reverse=self._reverse)

    def filter(self, predicate: Callable[[EntityT], bool]) -> list[EntityT]:
        """Return the ordered entities matching ``predicate``."""
        return [entity for entity in self.load_all() if predicate(entity)]

    def first(self, predicate: Callable[[EntityT], bool]) -> EntityT | None:
        for entity in self.load_all():
            if predicate(entity):
                return entity
        return None

    def save_or_update(self, entity: EntityT) -> None:
        self.engine.save_or_update(entity)

    def delete(self, entity: EntityT) -> None:
        self.engine.delete(entity)

    def save_all(self, entities: Iterable[EntityT]) -> None:
        self.engine.save_all(entities)

    def delete_all(self) -> None:
        self.engine.delete_all()
