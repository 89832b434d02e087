from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

from ..models import utc_now
from ..settings import StoreSettings
from .achievements import AchievementStore
from .base import CollectionStore
from .emergency_contacts import EmergencyContactStore
from .gear_items import GearItemStore
from .hike_records import HikeRecordStore
from .journals import JournalStore
from .location_sharing import LocationShareSessionStore
from .offline_maps import OfflineMapStore
from .recommendations import RecommendationStore
from .safety_checklist import SafetyChecklistStore
from .user_preferences import UserPreferenceStore

logger = logging.getLogger(__name__)


class StoreRegistry:
    """Every entity store of the app, built against one data directory."""

    def __init__(self, settings: StoreSettings, *, clock: Callable[[], datetime] = utc_now) -> None:
        self.settings = settings.normalized()
        self.journals = JournalStore.from_settings(self.settings, clock=clock)
        self.offline_maps = OfflineMapStore.from_settings(self.settings, clock=clock)
        self.hike_records = HikeRecordStore.from_settings(self.settings)
        self.achievements = AchievementStore.from_settings(self.settings, clock=clock)
        self.gear_items = GearItemStore.from_settings(self.settings, clock=clock)
        self.emergency_contacts = EmergencyContactStore.from_settings(self.settings, clock=clock)
        self.location_sessions = LocationShareSessionStore.from_settings(self.settings, clock=clock)
        self.recommendations = RecommendationStore.from_settings(self.settings)
        self.safety_checklist = SafetyChecklistStore.from_settings(self.settings, clock=clock)
        self.user_preferences = UserPreferenceStore.from_settings(self.settings, clock=clock)

    @classmethod
    def from_env(cls) -> "StoreRegistry":
        return cls(StoreSettings.from_env())

    @property
    def data_path(self) -> Path:
        return self.settings.data_path

    def __iter__(self) -> Iterator[CollectionStore[Any]]:
        return iter(
            (
                self.journals,
                self.offline_maps,
                self.hike_records,
                self.achievements,
                self.gear_items,
                self.emergency_contacts,
                self.location_sessions,
                self.recommendations,
                self.safety_checklist,
                self.user_preferences,
            )
        )

    def seed_defaults(self) -> None:
        """Fill the collections that ship with default content."""
        regions = self.offline_maps.seed_defaults_if_needed()
        achievements = self.achievements.ensure_defaults()
        checklist = self.safety_checklist.seed_defaults_if_needed()
        logger.debug(
            "Seeded defaults: regions=%d achievements=%d checklist=%d",
            len(regions),
            len(achievements),
            len(checklist),
        )

    def storage_report(self) -> dict[str, int | None]:
        """Map each collection file name to its size in bytes, or None when the file does not exist."""
        return {store.FILE_NAME: store.engine.file_size for store in self}
