from __future__ import annotations

import base64
import dataclasses
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import HikeJournal, JournalPhoto, utc_now
from .base import CollectionStore


class PhotoRecord(StoreRecord):
    id: uuid.UUID
    image_data: str
    caption: str | None = None
    taken_at: datetime
    order: int = 0


class JournalRecord(StoreRecord):
    id: uuid.UUID
    title: str
    content: str
    hike_date: datetime
    created_at: datetime
    updated_at: datetime
    trail_id: uuid.UUID | None = None
    trail_name: str | None = None
    weather_condition: str | None = None
    temperature: float | None = None
    humidity: float | None = None
    location_latitude: float | None = None
    location_longitude: float | None = None
    location_name: str | None = None
    hike_record_id: uuid.UUID | None = None
    is_shared: bool = False
    share_token: str | None = None
    photos: list[PhotoRecord] = []


class JournalMapping:
    """Photos are embedded in the journal record with their image bytes base64-encoded."""

    record_type = JournalRecord

    def to_record(self, entity: HikeJournal) -> JournalRecord:
        return JournalRecord(
            id=entity.id,
            title=entity.title,
            content=entity.content,
            hike_date=entity.hike_date,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            trail_id=entity.trail_id,
            trail_name=entity.trail_name,
            weather_condition=entity.weather_condition,
            temperature=entity.temperature,
            humidity=entity.humidity,
            location_latitude=entity.location_latitude,
            location_longitude=entity.location_longitude,
            location_name=entity.location_name,
            hike_record_id=entity.hike_record_id,
            is_shared=entity.is_shared,
            share_token=entity.share_token,
            photos=[
                PhotoRecord(
                    id=photo.id,
                    image_data=base64.b64encode(photo.image_data).decode("ascii"),
                    caption=photo.caption,
                    taken_at=photo.taken_at,
                    order=photo.order,
                )
                for photo in entity.photos
            ],
        )

    def to_entity(self, record: JournalRecord) -> HikeJournal:
        photos = [
            JournalPhoto(
                id=photo.id,
                image_data=base64.b64decode(photo.image_data, validate=True),
                caption=photo.caption,
                taken_at=photo.taken_at,
                order=photo.order,
            )
            for photo in record.photos
        ]
        return HikeJournal(
            id=record.id,
            title=record.title,
            content=record.content,
            hike_date=record.hike_date,
            created_at=record.created_at,
            updated_at=record.updated_at,
            trail_id=record.trail_id,
            trail_name=record.trail_name,
            weather_condition=record.weather_condition,
            temperature=record.temperature,
            humidity=record.humidity,
            location_latitude=record.location_latitude,
            location_longitude=record.location_longitude,
            location_name=record.location_name,
            hike_record_id=record.hike_record_id,
            is_shared=record.is_shared,
            share_token=record.share_token,
            photos=sorted(photos, key=lambda photo: photo.order),
        )

    def key(self, record: JournalRecord) -> uuid.UUID:
        return record.id


class JournalStore(CollectionStore[HikeJournal]):
    """Hike journals, newest hike first."""

    FILE_NAME = "journals.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, JournalMapping(), **engine_options),
            sort_key=lambda journal: journal.hike_date.timestamp(),
            reverse=True,
            clock=clock,
        )

    def load_journal(self, journal_id: uuid.UUID) -> HikeJournal | None:
        return self.engine.get(journal_id)

    def save_journal(self, journal: HikeJournal) -> HikeJournal:
        """Stamp ``updated_at``, reconcile the share token and upsert.

        Returns:
            The journal as persisted. The argument is not modified.
        """
        updated = dataclasses.replace(journal, updated_at=self._clock())
        updated.update_share_token()
        self.save_or_update(updated)
        return updated

    def journals_for_trail(self, trail_id: uuid.UUID) -> list[HikeJournal]:
        return self.filter(lambda journal: journal.trail_id == trail_id)

    def journals_for_hike_record(self, hike_record_id: uuid.UUID) -> list[HikeJournal]:
        return self.filter(lambda journal: journal.hike_record_id == hike_record_id)

    def shared_journals(self) -> list[HikeJournal]:
        return self.filter(lambda journal: journal.is_shared)
