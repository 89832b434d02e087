from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(UTC)


def _new_uuid_string() -> str:
    return str(uuid.uuid4()).upper()


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TrailDifficulty(str, Enum):
    EASY = "Easy"
    MODERATE = "Moderate"
    CHALLENGING = "Challenging"


class BadgeType(str, Enum):
    DISTANCE = "Distance"
    PEAK = "Peaks"
    STREAK = "Streak"
    EXPLORATION = "Exploration"


class GearCategory(str, Enum):
    ESSENTIAL = "Essential"
    CLOTHING = "Clothing"
    NAVIGATION = "Navigation"
    SAFETY = "Safety"
    FOOD = "Food"
    TOOLS = "Tools"
    OPTIONAL = "Optional"


class DownloadStatus(str, Enum):
    NOT_DOWNLOADED = "Not Downloaded"
    DOWNLOADING = "Downloading"
    DOWNLOADED = "Downloaded"
    FAILED = "Failed"
    UPDATING = "Updating"


class UserAction(str, Enum):
    VIEWED = "viewed"
    PLANNED = "planned"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class SceneryType(str, Enum):
    SEA = "sea"
    MOUNTAIN = "mountain"
    FOREST = "forest"
    RESERVOIR = "reservoir"
    CITY = "city"
    SUNSET = "sunset"
    SUNRISE = "sunrise"


class TimeOfDay(str, Enum):
    EARLY_MORNING = "early_morning"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class FitnessLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def recommended_difficulty(self) -> list[TrailDifficulty]:
        if self is FitnessLevel.BEGINNER:
            return [TrailDifficulty.EASY]
        if self is FitnessLevel.INTERMEDIATE:
            return [TrailDifficulty.EASY, TrailDifficulty.MODERATE]
        return [TrailDifficulty.MODERATE, TrailDifficulty.CHALLENGING]


# ---------------------------------------------------------------------------
# Journals
# ---------------------------------------------------------------------------


@dataclass
class JournalPhoto:
    image_data: bytes
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    caption: str | None = None
    taken_at: datetime = field(default_factory=utc_now)
    order: int = 0


@dataclass
class HikeJournal:
    """A written trip report, with its photos embedded."""

    title: str
    content: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    hike_date: datetime = field(default_factory=utc_now)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
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
    photos: list[JournalPhoto] = field(default_factory=list)

    @property
    def location(self) -> tuple[float, float] | None:
        if self.location_latitude is None or self.location_longitude is None:
            return None
        return (self.location_latitude, self.location_longitude)

    def update_share_token(self) -> None:
        """Issue a token when shared, drop it when not."""
        if self.is_shared and self.share_token is None:
            self.share_token = _new_uuid_string()
        elif not self.is_shared:
            self.share_token = None


# ---------------------------------------------------------------------------
# Offline maps
# ---------------------------------------------------------------------------

AVAILABLE_REGIONS: tuple[str, ...] = (
    "Hong Kong Island",
    "Kowloon Ridge",
    "Sai Kung East",
    "Lantau North",
)


@dataclass
class OfflineMapRegion:
    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    download_status: DownloadStatus = DownloadStatus.NOT_DOWNLOADED
    download_progress: float = 0.0
    downloaded_size: int = 0
    total_size: int = 0
    downloaded_at: datetime | None = None
    last_updated: datetime = field(default_factory=utc_now)

    @property
    def formatted_size(self) -> str:
        return f"{self.downloaded_size / (1024 * 1024):.1f} MB"

    @property
    def formatted_total_size(self) -> str:
        return f"{self.total_size / (1024 * 1024):.1f} MB"


# ---------------------------------------------------------------------------
# Hike records
# ---------------------------------------------------------------------------


@dataclass
class HikeTrackPoint:
    latitude: float
    longitude: float
    altitude: float
    speed: float
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: datetime = field(default_factory=utc_now)
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0


@dataclass
class HikeRecord:
    """A tracked hike. Distances in km, durations in seconds, altitudes in metres."""

    start_time: datetime
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    trail_id: uuid.UUID | None = None
    trail_name: str | None = None
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
    track_points: list[HikeTrackPoint] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


@dataclass
class Achievement:
    id: str
    badge_type: BadgeType
    title: str
    achievement_description: str
    icon: str
    target_value: float
    current_value: float = 0.0
    is_unlocked: bool = False
    unlocked_at: datetime | None = None

    @property
    def progress(self) -> float:
        if self.target_value <= 0:
            return 0.0
        return min(self.current_value / self.target_value, 1.0)

    def unlock(self, at: datetime | None = None) -> None:
        if self.is_unlocked:
            return
        self.is_unlocked = True
        self.unlocked_at = at or utc_now()

    def update_progress(self, value: float, at: datetime | None = None) -> None:
        self.current_value = value
        if self.current_value >= self.target_value and not self.is_unlocked:
            self.unlock(at)


@dataclass(frozen=True)
class AchievementTemplate:
    id: str
    badge_type: BadgeType
    title: str
    achievement_description: str
    icon: str
    target_value: float

    def create_achievement(self) -> Achievement:
        return Achievement(
            id=self.id,
            badge_type=self.badge_type,
            title=self.title,
            achievement_description=self.achievement_description,
            icon=self.icon,
            target_value=self.target_value,
        )


DEFAULT_ACHIEVEMENT_TEMPLATES: tuple[AchievementTemplate, ...] = (
    AchievementTemplate("distance_10km", BadgeType.DISTANCE, "Beginner Hiker", "Complete 10 km of hiking", "figure.walk", 10.0),
    AchievementTemplate("distance_50km", BadgeType.DISTANCE, "Hiking Enthusiast", "Complete 50 km of hiking", "figure.hiking", 50.0),
    AchievementTemplate("distance_100km", BadgeType.DISTANCE, "Hiking Expert", "Complete 100 km of hiking", "figure.climbing", 100.0),
    AchievementTemplate("distance_500km", BadgeType.DISTANCE, "Hiking Master", "Complete 500 km of hiking", "crown.fill", 500.0),
    AchievementTemplate("peak_lion_rock", BadgeType.PEAK, "Lion Rock Conqueror", "Summit Lion Rock", "mountain.2.fill", 1.0),
    AchievementTemplate(
        "peak_tai_mo_shan",
        BadgeType.PEAK,
        "Tai Mo Shan Conqueror",
        "Summit Tai Mo Shan (Hong Kong's highest peak)",
        "mountain.2.fill",
        1.0,
    ),
    AchievementTemplate(
        "peak_sunset_peak", BadgeType.PEAK, "Sunset Peak Conqueror", "Summit Sunset Peak (Lantau Island)", "mountain.2.fill", 1.0
    ),
    AchievementTemplate("peak_sharp_peak", BadgeType.PEAK, "Sharp Peak Conqueror", "Summit Sharp Peak", "mountain.2.fill", 1.0),
    AchievementTemplate("peak_4_peaks", BadgeType.PEAK, "Four Peaks Conqueror", "Summit 4 different peaks", "mountain.2.fill", 4.0),
    AchievementTemplate("streak_1_week", BadgeType.STREAK, "One Week Streak", "Hike for 7 consecutive days", "calendar", 7.0),
    AchievementTemplate(
        "streak_2_weeks", BadgeType.STREAK, "Two Week Streak", "Hike for 14 consecutive days", "calendar.badge.clock", 14.0
    ),
    AchievementTemplate(
        "streak_1_month", BadgeType.STREAK, "Monthly Streak", "Hike for 30 consecutive days", "calendar.badge.checkmark", 30.0
    ),
    AchievementTemplate("explore_3_districts", BadgeType.EXPLORATION, "Explorer", "Explore 3 different districts", "map", 3.0),
    AchievementTemplate(
        "explore_5_districts", BadgeType.EXPLORATION, "Adventurer", "Explore 5 different districts", "map.circle.fill", 5.0
    ),
    AchievementTemplate(
        "explore_10_districts", BadgeType.EXPLORATION, "Exploration Master", "Explore 10 different districts", "map.fill", 10.0
    ),
)


# ---------------------------------------------------------------------------
# Gear and safety checklists
# ---------------------------------------------------------------------------


@dataclass
class GearItem:
    category: GearCategory
    name: str
    icon_name: str
    id: str = field(default_factory=_new_uuid_string)
    is_required: bool = True
    is_completed: bool = False
    last_updated: datetime = field(default_factory=utc_now)
    hike_id: uuid.UUID | None = None


@dataclass
class SafetyChecklistItem:
    id: str
    icon_name: str
    title: str
    is_completed: bool = False
    last_updated: datetime = field(default_factory=utc_now)


DEFAULT_SAFETY_CHECKLIST: tuple[tuple[str, str, str], ...] = (
    ("location", "location.fill", "Enable Live Location"),
    ("water", "drop.fill", "Pack 2L of water"),
    ("heat", "bolt.heart", "Check heat stroke signal"),
    ("offline", "antenna.radiowaves.left.and.right", "Download offline map"),
    ("share", "person.2.wave.2", "Share hike plan with buddies"),
)


# ---------------------------------------------------------------------------
# Contacts and location sharing
# ---------------------------------------------------------------------------


@dataclass
class EmergencyContact:
    name: str
    phone_number: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    email: str | None = None
    is_primary: bool = False
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class LocationShareSession:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_active: bool = False
    started_at: datetime | None = None
    last_location_update: datetime | None = None
    last_location_latitude: float | None = None
    last_location_longitude: float | None = None
    share_link: str | None = None
    expires_at: datetime | None = None
    emergency_contacts: list[EmergencyContact] | None = None

    @property
    def last_location(self) -> tuple[float, float] | None:
        if self.last_location_latitude is None or self.last_location_longitude is None:
            return None
        return (self.last_location_latitude, self.last_location_longitude)

    def update_location(self, latitude: float, longitude: float, at: datetime | None = None) -> None:
        self.last_location_latitude = latitude
        self.last_location_longitude = longitude
        self.last_location_update = at or utc_now()


# ---------------------------------------------------------------------------
# Recommendations and preferences
# ---------------------------------------------------------------------------


@dataclass
class RecommendationRecord:
    trail_id: uuid.UUID
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    recommended_at: datetime = field(default_factory=utc_now)
    user_action: UserAction | None = None
    recommendation_score: float = 0.0
    reason: str = ""


@dataclass(frozen=True)
class TimeRange:
    min_minutes: int
    max_minutes: int


@dataclass(frozen=True)
class DistanceRange:
    min_km: float
    max_km: float


@dataclass
class UserPreference:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    preferred_scenery: list[SceneryType] = field(default_factory=list)
    preferred_difficulty: TrailDifficulty | None = None
    preferred_duration: TimeRange | None = None
    preferred_distance: DistanceRange | None = None
    preferred_time_of_day: list[TimeOfDay] = field(default_factory=list)
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE
    last_updated: datetime = field(default_factory=utc_now)
