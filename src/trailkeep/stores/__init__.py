from .achievements import AchievementMapping, AchievementRecord, AchievementStore
from .base import CollectionStore, timestamp_or_distant_past
from .emergency_contacts import EmergencyContactMapping, EmergencyContactRecord, EmergencyContactStore
from .gear_items import GearItemMapping, GearItemRecord, GearItemStore
from .hike_records import HikeRecordMapping, HikeRecordRecord, HikeRecordStore, TrackPointRecord
from .journals import JournalMapping, JournalRecord, JournalStore, PhotoRecord
from .location_sharing import (
    ContactSnapshotRecord,
    LocationShareSessionMapping,
    LocationShareSessionRecord,
    LocationShareSessionStore,
)
from .offline_maps import OfflineMapStore, OfflineRegionMapping, OfflineRegionRecord
from .recommendations import RecommendationMapping, RecommendationRecordRecord, RecommendationStore
from .registry import StoreRegistry
from .safety_checklist import SafetyChecklistItemMapping, SafetyChecklistItemRecord, SafetyChecklistStore
from .user_preferences import (
    DistanceRangeRecord,
    TimeRangeRecord,
    UserPreferenceMapping,
    UserPreferenceRecord,
    UserPreferenceStore,
)

__all__ = [
    "AchievementMapping",
    "AchievementRecord",
    "AchievementStore",
    "CollectionStore",
    "ContactSnapshotRecord",
    "DistanceRangeRecord",
    "EmergencyContactMapping",
    "EmergencyContactRecord",
    "EmergencyContactStore",
    "GearItemMapping",
    "GearItemRecord",
    "GearItemStore",
    "HikeRecordMapping",
    "HikeRecordRecord",
    "HikeRecordStore",
    "JournalMapping",
    "JournalRecord",
    "JournalStore",
    "LocationShareSessionMapping",
    "LocationShareSessionRecord",
    "LocationShareSessionStore",
    "OfflineMapStore",
    "OfflineRegionMapping",
    "OfflineRegionRecord",
    "PhotoRecord",
    "RecommendationMapping",
    "RecommendationRecordRecord",
    "RecommendationStore",
    "SafetyChecklistItemMapping",
    "SafetyChecklistItemRecord",
    "SafetyChecklistStore",
    "StoreRegistry",
    "TimeRangeRecord",
    "TrackPointRecord",
    "UserPreferenceMapping",
    "UserPreferenceRecord",
    "UserPreferenceStore",
    "timestamp_or_distant_past",
]
