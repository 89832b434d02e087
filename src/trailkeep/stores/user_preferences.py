from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import (
    DistanceRange,
    FitnessLevel,
    SceneryType,
    TimeOfDay,
    TimeRange,
    TrailDifficulty,
    UserPreference,
    utc_now,
)
from .base import CollectionStore


class TimeRangeRecord(StoreRecord):
    min_minutes: int
    max_minutes: int


class DistanceRangeRecord(StoreRecord):
    min_km: float
    max_km: float


class UserPreferenceRecord(StoreRecord):
    id: uuid.UUID
    preferred_scenery: list[SceneryType] = []
    preferred_difficulty: TrailDifficulty | None = None
    preferred_duration: TimeRangeRecord | None = None
    preferred_distance: DistanceRangeRecord | None = None
    preferred_time_of_day: list[TimeOfDay] = []
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE
    last_updated: datetime


class UserPreferenceMapping:
    record_type = UserPreferenceRecord

    def to_record(self, entity: UserPreference) -> UserPreferenceRecord:
        duration = None
        if entity.preferred_duration is not None:
            duration = TimeRangeRecord(
                min_minutes=entity.preferred_duration.min_minutes,
                max_minutes=entity.preferred_duration.max_minutes,
            )
        distance = None
        if entity.preferred_distance is not None:
            distance = DistanceRangeRecord(
                min_km=entity.preferred_distance.min_km,
                max_km=entity.preferred_distance.max_km,
            )
        return UserPreferenceRecord(
            id=entity.id,
            preferred_scenery=list(entity.preferred_scenery),
            preferred_difficulty=entity.preferred_difficulty,
            preferred_duration=duration,
            preferred_distance=distance,
            preferred_time_of_day=list(entity.preferred_time_of_day),
            fitness_level=entity.fitness_level,
            last_updated=entity.last_updated,
        )

    def to_entity(self, record: UserPreferenceRecord) -> UserPreference:
        duration = None
        if record.preferred_duration is not None:
            duration = TimeRange(record.preferred_duration.min_minutes, record.preferred_duration.max_minutes)
        distance = None
        if record.preferred_distance is not None:
            distance = DistanceRange(record.preferred_distance.min_km, record.preferred_distance.max_km)
        return UserPreference(
            id=record.id,
            preferred_scenery=list(record.preferred_scenery),
            preferred_difficulty=record.preferred_difficulty,
            preferred_duration=duration,
            preferred_distance=distance,
            preferred_time_of_day=list(record.preferred_time_of_day),
            fitness_level=record.fitness_level,
            last_updated=record.last_updated,
        )

    def key(self, record: UserPreferenceRecord) -> uuid.UUID:
        return record.id


class UserPreferenceStore(CollectionStore[UserPreference]):
    """Holds at most one preference record: the current one."""

    FILE_NAME = "user_preferences.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, UserPreferenceMapping(), **engine_options),
            clock=clock,
        )

    def current_preference(self) -> UserPreference | None:
        preferences = self.engine.load_all()
        return preferences[0] if preferences else None

    def save_current_preference(self, preference: UserPreference) -> UserPreference:
        """Replace whatever is stored with ``preference`` in a single write."""
        updated = dataclasses.replace(preference, last_updated=self._clock())
        self.engine.update(lambda _: [updated])
        return updated
