from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..identity import derive_uuid
from ..mapping import StoreRecord
from ..models import GearCategory, GearItem, utc_now
from .base import CollectionStore


class GearItemRecord(StoreRecord):
    id: str
    category: GearCategory
    name: str
    icon_name: str
    is_required: bool = True
    is_completed: bool = False
    last_updated: datetime
    hike_id: uuid.UUID | None = None


class GearItemMapping:
    record_type = GearItemRecord

    def to_record(self, entity: GearItem) -> GearItemRecord:
        return GearItemRecord(
            id=entity.id,
            category=entity.category,
            name=entity.name,
            icon_name=entity.icon_name,
            is_required=entity.is_required,
            is_completed=entity.is_completed,
            last_updated=entity.last_updated,
            hike_id=entity.hike_id,
        )

    def to_entity(self, record: GearItemRecord) -> GearItem:
        return GearItem(
            id=record.id,
            category=record.category,
            name=record.name,
            icon_name=record.icon_name,
            is_required=record.is_required,
            is_completed=record.is_completed,
            last_updated=record.last_updated,
            hike_id=record.hike_id,
        )

    def key(self, record: GearItemRecord) -> uuid.UUID:
        return derive_uuid(record.id)


def _gear_order(item: GearItem) -> tuple[str, bool, str]:
    # category, then required before optional, then name
    return (item.category.value, not item.is_required, item.name)


class GearItemStore(CollectionStore[GearItem]):
    FILE_NAME = "gear_items.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, GearItemMapping(), **engine_options),
            sort_key=_gear_order,
            clock=clock,
        )

    def items_for_hike(self, hike_id: uuid.UUID) -> list[GearItem]:
        return self.filter(lambda item: item.hike_id == hike_id)

    def items_by_category(self, category: GearCategory) -> list[GearItem]:
        return self.filter(lambda item: item.category == category)

    def required_items(self) -> list[GearItem]:
        return self.filter(lambda item: item.is_required)

    def toggle_completion(self, item: GearItem) -> GearItem:
        updated = dataclasses.replace(item, is_completed=not item.is_completed, last_updated=self._clock())
        self.save_or_update(updated)
        return updated

    def delete_items_for_hike(self, hike_id: uuid.UUID) -> int:
        """Remove every item packed for ``hike_id`` in one write and return how many went."""
        removed = 0

        def keep_others(items: list[GearItem]) -> list[GearItem]:
            nonlocal removed
            kept = [item for item in items if item.hike_id != hike_id]
            removed = len(items) - len(kept)
            return kept

        self.engine.update(keep_others)
        return removed
