from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..errors import RecordNotFoundError
from ..identity import derive_uuid
from ..mapping import StoreRecord
from ..models import DEFAULT_SAFETY_CHECKLIST, SafetyChecklistItem, utc_now
from .base import CollectionStore

logger = logging.getLogger(__name__)


class SafetyChecklistItemRecord(StoreRecord):
    id: str
    icon_name: str
    title: str
    is_completed: bool = False
    last_updated: datetime


class SafetyChecklistItemMapping:
    record_type = SafetyChecklistItemRecord

    def to_record(self, entity: SafetyChecklistItem) -> SafetyChecklistItemRecord:
        return SafetyChecklistItemRecord(
            id=entity.id,
            icon_name=entity.icon_name,
            title=entity.title,
            is_completed=entity.is_completed,
            last_updated=entity.last_updated,
        )

    def to_entity(self, record: SafetyChecklistItemRecord) -> SafetyChecklistItem:
        return SafetyChecklistItem(
            id=record.id,
            icon_name=record.icon_name,
            title=record.title,
            is_completed=record.is_completed,
            last_updated=record.last_updated,
        )

    def key(self, record: SafetyChecklistItemRecord) -> uuid.UUID:
        return derive_uuid(record.id)


class SafetyChecklistStore(CollectionStore[SafetyChecklistItem]):
    """Pre-hike safety checklist, most recently touched item first."""

    FILE_NAME = "safety_checklist_items.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, SafetyChecklistItemMapping(), **engine_options),
            sort_key=lambda item: item.last_updated.timestamp(),
            reverse=True,
            clock=clock,
        )

    def seed_defaults_if_needed(self) -> list[SafetyChecklistItem]:
        if self.engine.load_all():
            return []
        now = self._clock()
        items = [
            SafetyChecklistItem(id=item_id, icon_name=icon_name, title=title, last_updated=now)
            for item_id, icon_name, title in DEFAULT_SAFETY_CHECKLIST
        ]
        self.save_all(items)
        logger.info("Seeded %d safety checklist items", len(items))
        return items

    def find_by_id(self, item_id: str) -> SafetyChecklistItem | None:
        return self.engine.get(derive_uuid(item_id))

    def toggle_completion(self, item: SafetyChecklistItem) -> SafetyChecklistItem:
        updated = dataclasses.replace(item, is_completed=not item.is_completed, last_updated=self._clock())
        self.save_or_update(updated)
        return updated

    def set_completed(self, item_id: str, is_completed: bool) -> SafetyChecklistItem:
        """Set the completion flag of a stored item.

        Raises:
            RecordNotFoundError: If no item has ``item_id``.
        """
        item = self.find_by_id(item_id)
        if item is None:
            raise RecordNotFoundError(f"No safety checklist item with id {item_id!r}", path=self.file_path)
        updated = dataclasses.replace(item, is_completed=is_completed, last_updated=self._clock())
        self.save_or_update(updated)
        return updated

    def completed_items(self) -> list[SafetyChecklistItem]:
        return self.filter(lambda item: item.is_completed)

    def incomplete_items(self) -> list[SafetyChecklistItem]:
        return self.filter(lambda item: not item.is_completed)

    def completion_percentage(self) -> float:
        """Fraction of items completed, from 0.0 to 1.0. An empty checklist is 0.0."""
        items = self.engine.load_all()
        if not items:
            return 0.0
        return sum(1 for item in items if item.is_completed) / len(items)
