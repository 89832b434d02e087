from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import HikeRecord, HikeTrackPoint
from .base import CollectionStore


class TrackPointRecord(StoreRecord):
    id: uuid.UUID
    latitude: float
    longitude: float
    altitude: float
    speed: float
    timestamp: datetime
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0


class HikeRecordRecord(StoreRecord):
    id: uuid.UUID
    trail_id: uuid.UUID | None = None
    trail_name: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    is_completed: bool = False
    total_distance: float = 0.0
    total_duration: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    min_altitude: float = 0.0
    max_altitude: float = 0.0
    notes: str | None = None
    track_points: list[TrackPointRecord] = []


class HikeRecordMapping:
    """Track points travel inside their hike so deleting a hike deletes its track."""

    record_type = HikeRecordRecord

    def to_record(self, entity: HikeRecord) -> HikeRecordRecord:
        return HikeRecordRecord(
            id=entity.id,
            trail_id=entity.trail_id,
            trail_name=entity.trail_name,
            start_time=entity.start_time,
            end_time=entity.end_time,
            is_completed=entity.is_completed,
            total_distance=entity.total_distance,
            total_duration=entity.total_duration,
            average_speed=entity.average_speed,
            max_speed=entity.max_speed,
            elevation_gain=entity.elevation_gain,
            elevation_loss=entity.elevation_loss,
            min_altitude=entity.min_altitude,
            max_altitude=entity.max_altitude,
            notes=entity.notes,
            track_points=[
                TrackPointRecord(
                    id=point.id,
                    latitude=point.latitude,
                    longitude=point.longitude,
                    altitude=point.altitude,
                    speed=point.speed,
                    timestamp=point.timestamp,
                    horizontal_accuracy=point.horizontal_accuracy,
                    vertical_accuracy=point.vertical_accuracy,
                )
                for point in entity.track_points
            ],
        )

    def to_entity(self, record: HikeRecordRecord) -> HikeRecord:
        points = [
            HikeTrackPoint(
                id=point.id,
                latitude=point.latitude,
                longitude=point.longitude,
                altitude=point.altitude,
                speed=point.speed,
                timestamp=point.timestamp,
                horizontal_accuracy=point.horizontal_accuracy,
                vertical_accuracy=point.vertical_accuracy,
            )
            for point in record.track_points
        ]
        return HikeRecord(
            id=record.id,
            trail_id=record.trail_id,
            trail_name=record.trail_name,
            start_time=record.start_time,
            end_time=record.end_time,
            is_completed=record.is_completed,
            total_distance=record.total_distance,
            total_duration=record.total_duration,
            average_speed=record.average_speed,
            max_speed=record.max_speed,
            elevation_gain=record.elevation_gain,
            elevation_loss=record.elevation_loss,
            min_altitude=record.min_altitude,
            max_altitude=record.max_altitude,
            notes=record.notes,
            track_points=sorted(points, key=lambda point: point.timestamp.timestamp()),
        )

    def key(self, record: HikeRecordRecord) -> uuid.UUID:
        return record.id


class HikeRecordStore(CollectionStore[HikeRecord]):
    """Tracked hikes, most recent start first."""

    FILE_NAME = "hike_records.json"

    def __init__(self, root: Path, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, HikeRecordMapping(), **engine_options),
            sort_key=lambda record: record.start_time.timestamp(),
            reverse=True,
        )

    def load_record(self, record_id: uuid.UUID) -> HikeRecord | None:
        return self.engine.get(record_id)

    def completed_records(self) -> list[HikeRecord]:
        return self.filter(lambda record: record.is_completed)

    def records_for_trail(self, trail_id: uuid.UUID) -> list[HikeRecord]:
        return self.filter(lambda record: record.trail_id == trail_id)
