from importlib.metadata import version

from .canonical import encode_collection, normalize_for_json, to_canonical_json
from .engine import FileStore, corrupted_backup_path
from .errors import (
    DecodingFailedError,
    EncodingFailedError,
    FileStoreError,
    ReadFailedError,
    RecordNotFoundError,
    StorageIOError,
    WriteFailedError,
)
from .identity import DERIVATION_VERSION, derive_uuid, parse_uuid_literal
from .mapping import RecordMapping, StoreRecord
from .models import (
    AVAILABLE_REGIONS,
    DEFAULT_ACHIEVEMENT_TEMPLATES,
    DEFAULT_SAFETY_CHECKLIST,
    Achievement,
    AchievementTemplate,
    BadgeType,
    DistanceRange,
    DownloadStatus,
    EmergencyContact,
    FitnessLevel,
    GearCategory,
    GearItem,
    HikeJournal,
    HikeRecord,
    HikeTrackPoint,
    JournalPhoto,
    LocationShareSession,
    OfflineMapRegion,
    RecommendationRecord,
    SafetyChecklistItem,
    SceneryType,
    TimeOfDay,
    TimeRange,
    TrailDifficulty,
    UserAction,
    UserPreference,
    utc_now,
)
from .settings import StoreSettings
from .stores import StoreRegistry


def get_version() -> str:
    try:
        return version(__name__)
    except Exception:
        return "0.0.0"


__all__ = [
    "AVAILABLE_REGIONS",
    "Achievement",
    "AchievementTemplate",
    "BadgeType",
    "DEFAULT_ACHIEVEMENT_TEMPLATES",
    "DEFAULT_SAFETY_CHECKLIST",
    "DERIVATION_VERSION",
    "DecodingFailedError",
    "DistanceRange",
    "DownloadStatus",
    "EmergencyContact",
    "EncodingFailedError",
    "FileStore",
    "FileStoreError",
    "FitnessLevel",
    "GearCategory",
    "GearItem",
    "HikeJournal",
    "HikeRecord",
    "HikeTrackPoint",
    "JournalPhoto",
    "LocationShareSession",
    "OfflineMapRegion",
    "ReadFailedError",
    "RecommendationRecord",
    "RecordMapping",
    "RecordNotFoundError",
    "SafetyChecklistItem",
    "SceneryType",
    "StorageIOError",
    "StoreRecord",
    "StoreRegistry",
    "StoreSettings",
    "TimeOfDay",
    "TimeRange",
    "TrailDifficulty",
    "UserAction",
    "UserPreference",
    "WriteFailedError",
    "corrupted_backup_path",
    "derive_uuid",
    "encode_collection",
    "get_version",
    "normalize_for_json",
    "parse_uuid_literal",
    "to_canonical_json",
    "utc_now",
]
