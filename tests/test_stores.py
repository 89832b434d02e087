from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from trailkeep import (
    AVAILABLE_REGIONS,
    DEFAULT_ACHIEVEMENT_TEMPLATES,
    DecodingFailedError,
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
    RecordNotFoundError,
    SceneryType,
    StoreRegistry,
    StoreSettings,
    TimeOfDay,
    TimeRange,
    TrailDifficulty,
    UserAction,
    UserPreference,
    derive_uuid,
)
from trailkeep.stores import (
    AchievementStore,
    EmergencyContactStore,
    GearItemStore,
    HikeRecordStore,
    JournalStore,
    LocationShareSessionStore,
    OfflineMapStore,
    RecommendationStore,
    SafetyChecklistStore,
    UserPreferenceStore,
)

BASE_TIME = datetime(2024, 6, 1, 7, 0, tzinfo=UTC)


class TickingClock:
    """Returns BASE_TIME, then one minute later on every call."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> datetime:
        value = BASE_TIME + timedelta(minutes=self.calls)
        self.calls += 1
        return value


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


def _at(hours: float) -> datetime:
    return BASE_TIME + timedelta(hours=hours)


# ---------------------------------------------------------------------------
# Journals
# ---------------------------------------------------------------------------


def test_journal_round_trip_keeps_photos_in_order(tmp_path: Path) -> None:
    store = JournalStore(tmp_path)
    journal = HikeJournal(
        title="MacLehose Stage 2",
        content="Long beaches, steep climbs.",
        hike_date=_at(1),
        trail_id=uuid.uuid4(),
        trail_name="MacLehose Trail",
        weather_condition="Sunny",
        temperature=29.5,
        humidity=78.0,
        location_latitude=22.38,
        location_longitude=114.37,
        location_name="Sai Wan",
        photos=[
            JournalPhoto(image_data=b"\x89PNG-first", caption="Ham Tin", taken_at=_at(2), order=0),
            JournalPhoto(image_data=b"\xff\xd8second", taken_at=_at(3), order=1),
        ],
    )
    store.save_or_update(journal)

    assert store.load_journal(journal.id) == journal
    assert journal.location == (22.38, 114.37)


def test_journal_photos_are_restored_by_order_field(tmp_path: Path) -> None:
    store = JournalStore(tmp_path)
    photos = [JournalPhoto(image_data=bytes([index]), order=order) for index, order in enumerate((2, 0, 1))]
    journal = HikeJournal(title="t", content="c", photos=photos)
    store.save_or_update(journal)

    loaded = store.load_journal(journal.id)
    assert loaded is not None
    assert [photo.order for photo in loaded.photos] == [0, 1, 2]
    assert [photo.image_data for photo in loaded.photos] == [b"\x01", b"\x02", b"\x00"]

    raw = json.loads(store.file_path.read_text(encoding="utf-8"))
    assert raw[0]["photos"][0]["imageData"] == "AA=="


def test_save_journal_stamps_updated_at_and_reconciles_share_token(tmp_path: Path, clock: TickingClock) -> None:
    store = JournalStore(tmp_path, clock=clock)
    journal = HikeJournal(title="Lantau Peak", content="Sunrise", is_shared=True)

    saved = store.save_journal(journal)
    assert saved.updated_at == BASE_TIME
    assert saved.share_token is not None
    assert saved.share_token == saved.share_token.upper()
    assert journal.share_token is None

    saved.is_shared = False
    unshared = store.save_journal(saved)
    assert unshared.share_token is None
    assert store.load_journal(journal.id) == unshared
    assert unshared.updated_at == BASE_TIME + timedelta(minutes=1)


def test_journal_queries_and_ordering(tmp_path: Path) -> None:
    store = JournalStore(tmp_path)
    trail_id = uuid.uuid4()
    record_id = uuid.uuid4()
    older = HikeJournal(title="older", content="", hike_date=_at(0), trail_id=trail_id)
    newer = HikeJournal(title="newer", content="", hike_date=_at(5), hike_record_id=record_id, is_shared=True)
    store.save_all([older, newer])

    assert [journal.title for journal in store.load_all()] == ["newer", "older"]
    assert store.journals_for_trail(trail_id) == [older]
    assert store.journals_for_hike_record(record_id) == [newer]
    assert store.shared_journals() == [newer]


def test_journal_with_invalid_photo_data_raises_decoding_failed(tmp_path: Path) -> None:
    journal_id = uuid.uuid4()
    (tmp_path / "journals.json").write_text(
        json.dumps(
            [
                {
                    "id": str(journal_id),
                    "title": "t",
                    "content": "c",
                    "hikeDate": "2024-06-01T07:00:00Z",
                    "createdAt": "2024-06-01T07:00:00Z",
                    "updatedAt": "2024-06-01T07:00:00Z",
                    "photos": [
                        {"id": str(uuid.uuid4()), "imageData": "%%% not base64 %%%", "takenAt": "2024-06-01T07:00:00Z"}
                    ],
                }
            ]
        ),
        encoding="utf-8",
    )
    with pytest.raises(DecodingFailedError):
        JournalStore(tmp_path).load_all()


# ---------------------------------------------------------------------------
# Offline maps
# ---------------------------------------------------------------------------


def test_offline_maps_seed_once_and_order_by_name(tmp_path: Path, clock: TickingClock) -> None:
    store = OfflineMapStore(tmp_path, clock=clock)

    seeded = store.seed_defaults_if_needed()
    assert [region.name for region in seeded] == list(AVAILABLE_REGIONS)
    assert store.seed_defaults_if_needed() == []
    assert [region.name for region in store.load_all()] == sorted(AVAILABLE_REGIONS)


def test_offline_region_update_stamps_last_updated(tmp_path: Path, clock: TickingClock) -> None:
    store = OfflineMapStore(tmp_path, clock=clock)
    region = OfflineMapRegion(name="Lantau North", last_updated=_at(-48))
    store.save_or_update(region)

    region.download_status = DownloadStatus.DOWNLOADED
    region.download_progress = 1.0
    region.downloaded_size = 5 * 1024 * 1024
    region.total_size = 5 * 1024 * 1024
    region.downloaded_at = _at(-1)
    updated = store.update_region(region)

    assert updated.last_updated == BASE_TIME
    assert store.region_named("Lantau North") == updated
    assert store.region_named("Atlantis") is None
    assert updated.formatted_size == "5.0 MB"


# ---------------------------------------------------------------------------
# Hike records
# ---------------------------------------------------------------------------


def test_hike_record_round_trip_sorts_track_points_by_time(tmp_path: Path) -> None:
    store = HikeRecordStore(tmp_path)
    points = [
        HikeTrackPoint(latitude=22.3, longitude=114.1, altitude=120.0, speed=1.2, timestamp=_at(0.2)),
        HikeTrackPoint(latitude=22.31, longitude=114.11, altitude=140.5, speed=1.4, timestamp=_at(0.1)),
    ]
    record = HikeRecord(
        start_time=_at(0),
        end_time=_at(2),
        is_completed=True,
        total_distance=8.4,
        total_duration=7200.0,
        elevation_gain=410.0,
        notes="Humid",
        track_points=points,
    )
    store.save_or_update(record)

    loaded = store.load_record(record.id)
    assert loaded is not None
    assert [point.timestamp for point in loaded.track_points] == [_at(0.1), _at(0.2)]
    record.track_points.sort(key=lambda point: point.timestamp)
    assert loaded == record


def test_hike_record_queries(tmp_path: Path) -> None:
    store = HikeRecordStore(tmp_path)
    trail_id = uuid.uuid4()
    done = HikeRecord(start_time=_at(0), is_completed=True, trail_id=trail_id)
    active = HikeRecord(start_time=_at(3))
    store.save_all([done, active])

    assert store.load_all() == [active, done]
    assert store.completed_records() == [done]
    assert store.records_for_trail(trail_id) == [done]


def test_hike_record_with_mixed_naive_and_aware_track_points_stays_readable(tmp_path: Path) -> None:
    store = HikeRecordStore(tmp_path)
    aware = HikeTrackPoint(latitude=22.35, longitude=114.18, altitude=495.0, speed=0.9, timestamp=_at(0.1))
    naive = HikeTrackPoint(latitude=22.34, longitude=114.17, altitude=380.0, speed=1.1, timestamp=datetime(2000, 1, 1, 6, 0))
    record = HikeRecord(start_time=_at(0), track_points=[aware, naive])
    store.save_or_update(record)

    loaded = store.load_all()

    assert len(loaded) == 1
    assert loaded[0].track_points == [naive, aware]


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


def test_ensure_defaults_backfills_missing_achievements_only(tmp_path: Path, clock: TickingClock) -> None:
    store = AchievementStore(tmp_path, clock=clock)

    added = store.ensure_defaults()
    assert len(added) == len(DEFAULT_ACHIEVEMENT_TEMPLATES)
    assert store.ensure_defaults() == []

    store.update_progress("distance_10km", 4.0)
    store.delete(store.find_by_id("peak_lion_rock"))

    readded = store.ensure_defaults()
    assert [achievement.id for achievement in readded] == ["peak_lion_rock"]
    kept = store.find_by_id("distance_10km")
    assert kept is not None
    assert kept.current_value == 4.0
    assert len(store.load_all()) == len(DEFAULT_ACHIEVEMENT_TEMPLATES)


def test_ensure_defaults_with_nothing_missing_does_not_write(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = AchievementStore(tmp_path)
    store.ensure_defaults()
    writes: list[Path] = []
    monkeypatch.setattr("trailkeep.engine._atomic_write_bytes", lambda path, content: writes.append(path))

    assert store.ensure_defaults() == []
    assert writes == []


def test_achievement_progress_unlocks_at_target(tmp_path: Path, clock: TickingClock) -> None:
    store = AchievementStore(tmp_path, clock=clock)
    store.ensure_defaults()

    partial = store.update_progress("distance_10km", 9.9)
    assert not partial.is_unlocked
    assert partial.progress == pytest.approx(0.99)

    unlocked = store.update_progress("distance_10km", 10.0)
    assert unlocked.is_unlocked
    assert unlocked.unlocked_at == BASE_TIME + timedelta(minutes=1)
    assert store.find_by_id("distance_10km") == unlocked

    peak = store.unlock("peak_sharp_peak")
    assert peak.is_unlocked
    assert peak.current_value == 0.0


def test_achievement_ids_stay_strings_on_disk(tmp_path: Path) -> None:
    store = AchievementStore(tmp_path)
    store.ensure_defaults()

    raw = json.loads(store.file_path.read_text(encoding="utf-8"))
    assert {item["id"] for item in raw} == {template.id for template in DEFAULT_ACHIEVEMENT_TEMPLATES}
    assert store.engine.entity_key(store.find_by_id("streak_1_week")) == derive_uuid("streak_1_week")


def test_achievement_ordering_groups_by_badge_type(tmp_path: Path) -> None:
    store = AchievementStore(tmp_path)
    store.ensure_defaults()

    ordered = store.load_all()
    assert ordered[0].id == "distance_10km"
    assert [achievement.badge_type.value for achievement in ordered] == sorted(
        achievement.badge_type.value for achievement in ordered
    )


def test_unknown_achievement_raises_record_not_found(tmp_path: Path) -> None:
    store = AchievementStore(tmp_path)
    with pytest.raises(RecordNotFoundError):
        store.update_progress("no_such_badge", 1.0)
    with pytest.raises(KeyError):
        store.unlock("no_such_badge")
    assert store.find_by_id("no_such_badge") is None


# ---------------------------------------------------------------------------
# Gear items
# ---------------------------------------------------------------------------


def test_gear_items_ordering_and_filters(tmp_path: Path) -> None:
    store = GearItemStore(tmp_path)
    hike_id = uuid.uuid4()
    water = GearItem(category=GearCategory.ESSENTIAL, name="Water", icon_name="drop", hike_id=hike_id)
    poles = GearItem(category=GearCategory.TOOLS, name="Poles", icon_name="figure", is_required=False)
    map_item = GearItem(category=GearCategory.ESSENTIAL, name="Map", icon_name="map", is_required=False)
    torch = GearItem(category=GearCategory.ESSENTIAL, name="Torch", icon_name="flashlight", hike_id=hike_id)
    store.save_all([poles, map_item, torch, water])

    assert [item.name for item in store.load_all()] == ["Torch", "Water", "Map", "Poles"]
    assert store.items_by_category(GearCategory.TOOLS) == [poles]
    assert [item.name for item in store.required_items()] == ["Torch", "Water"]
    assert [item.name for item in store.items_for_hike(hike_id)] == ["Torch", "Water"]


def test_gear_toggle_and_delete_for_hike(tmp_path: Path, clock: TickingClock) -> None:
    store = GearItemStore(tmp_path, clock=clock)
    hike_id = uuid.uuid4()
    jacket = GearItem(category=GearCategory.CLOTHING, name="Rain jacket", icon_name="cloud.rain", hike_id=hike_id)
    hat = GearItem(category=GearCategory.CLOTHING, name="Hat", icon_name="sun.max")
    store.save_all([jacket, hat])

    toggled = store.toggle_completion(jacket)
    assert toggled.is_completed
    assert toggled.last_updated == BASE_TIME
    assert store.items_for_hike(hike_id) == [toggled]

    assert store.delete_items_for_hike(hike_id) == 1
    assert store.load_all() == [hat]
    assert store.delete_items_for_hike(hike_id) == 0


def test_gear_items_with_same_string_id_replace_each_other(tmp_path: Path) -> None:
    store = GearItemStore(tmp_path)
    store.save_or_update(GearItem(id="boots", category=GearCategory.ESSENTIAL, name="Boots", icon_name="shoe"))
    store.save_or_update(GearItem(id="boots", category=GearCategory.ESSENTIAL, name="Trail boots", icon_name="shoe"))

    assert [item.name for item in store.load_all()] == ["Trail boots"]


# ---------------------------------------------------------------------------
# Emergency contacts
# ---------------------------------------------------------------------------


def test_set_primary_contact_leaves_exactly_one_primary(tmp_path: Path) -> None:
    store = EmergencyContactStore(tmp_path)
    mum = EmergencyContact(name="Mum", phone_number="+852 5555 0001", is_primary=True, created_at=_at(0))
    buddy = EmergencyContact(name="Buddy", phone_number="+852 5555 0002", created_at=_at(1))
    store.save_all([mum, buddy])

    store.set_primary_contact(buddy)

    contacts = store.load_all()
    assert [contact.name for contact in contacts] == ["Buddy", "Mum"]
    assert [contact.is_primary for contact in contacts] == [True, False]
    primary = store.primary_contact()
    assert primary is not None and primary.id == buddy.id


def test_set_primary_contact_adds_unsaved_contact(tmp_path: Path) -> None:
    store = EmergencyContactStore(tmp_path)
    existing = EmergencyContact(name="Ranger", phone_number="999", is_primary=True, created_at=_at(0))
    store.save_or_update(existing)
    newcomer = EmergencyContact(name="Sister", phone_number="+852 5555 0003", email="sis@example.com", created_at=_at(2))

    saved = store.set_primary_contact(newcomer)

    assert saved.is_primary
    assert newcomer.is_primary is False
    assert len(store.load_all()) == 2
    assert sum(contact.is_primary for contact in store.load_all()) == 1
    assert store.primary_contact() == saved


def test_primary_contact_is_none_without_contacts(tmp_path: Path) -> None:
    assert EmergencyContactStore(tmp_path).primary_contact() is None


# ---------------------------------------------------------------------------
# Location sharing
# ---------------------------------------------------------------------------


def test_location_session_round_trip_with_contact_snapshots(tmp_path: Path) -> None:
    store = LocationShareSessionStore(tmp_path)
    contact = EmergencyContact(name="Mum", phone_number="+852 5555 0001", created_at=_at(-10))
    session = LocationShareSession(
        started_at=_at(0),
        share_link="https://share.example/abc",
        expires_at=_at(6),
        emergency_contacts=[contact],
    )
    session.update_location(22.27, 114.15, at=_at(0.5))
    without_contacts = LocationShareSession(started_at=_at(-1))
    with_empty_contacts = LocationShareSession(started_at=_at(-2), emergency_contacts=[])
    store.save_all([session, without_contacts, with_empty_contacts])

    assert store.load_all() == [session, without_contacts, with_empty_contacts]
    assert store.load_all()[0].last_location == (22.27, 114.15)


def test_activate_session_deactivates_others(tmp_path: Path, clock: TickingClock) -> None:
    store = LocationShareSessionStore(tmp_path, clock=clock)
    first = store.activate_session(LocationShareSession())
    assert first.started_at == BASE_TIME

    second = store.activate_session(LocationShareSession(started_at=_at(1)))

    sessions = store.load_all()
    assert [session.id for session in sessions] == [second.id, first.id]
    assert [session.is_active for session in sessions] == [True, False]
    assert store.active_session() == second


def test_deactivate_all_sessions(tmp_path: Path) -> None:
    store = LocationShareSessionStore(tmp_path)
    assert store.deactivate_all_sessions() == 0
    assert not store.engine.file_exists

    store.activate_session(LocationShareSession(started_at=_at(0)))
    assert store.deactivate_all_sessions() == 1
    assert store.active_session() is None


def test_deactivate_all_sessions_without_active_session_does_not_write(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = LocationShareSessionStore(tmp_path)
    store.save_or_update(LocationShareSession(started_at=_at(0)))
    writes: list[Path] = []
    monkeypatch.setattr("trailkeep.engine._atomic_write_bytes", lambda path, content: writes.append(path))

    assert store.deactivate_all_sessions() == 0
    assert writes == []


def test_sessions_without_start_time_sort_last(tmp_path: Path) -> None:
    store = LocationShareSessionStore(tmp_path)
    unstarted = LocationShareSession()
    started = LocationShareSession(started_at=_at(0))
    store.save_all([unstarted, started])

    assert store.load_all() == [started, unstarted]


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


def test_recommendation_queries(tmp_path: Path) -> None:
    store = RecommendationStore(tmp_path)
    trail_id = uuid.uuid4()
    old = RecommendationRecord(trail_id=trail_id, recommended_at=_at(0), user_action=UserAction.VIEWED)
    new = RecommendationRecord(
        trail_id=trail_id,
        recommended_at=_at(4),
        user_action=UserAction.COMPLETED,
        recommendation_score=0.87,
        reason="Matches your love of sea views",
    )
    other = RecommendationRecord(trail_id=uuid.uuid4(), recommended_at=_at(2))
    store.save_all([old, other, new])

    assert store.load_all() == [new, other, old]
    assert store.records_for_trail(trail_id) == [new, old]
    assert store.records_with_action(UserAction.VIEWED) == [old]
    assert store.most_recent_for_trail(trail_id) == new
    assert store.most_recent_for_trail(uuid.uuid4()) is None


# ---------------------------------------------------------------------------
# Safety checklist
# ---------------------------------------------------------------------------


def test_safety_checklist_seed_and_completion(tmp_path: Path, clock: TickingClock) -> None:
    store = SafetyChecklistStore(tmp_path, clock=clock)
    assert store.completion_percentage() == 0.0

    seeded = store.seed_defaults_if_needed()
    assert [item.id for item in seeded] == ["location", "water", "heat", "offline", "share"]
    assert store.seed_defaults_if_needed() == []

    water = store.set_completed("water", True)
    assert water.is_completed
    assert store.completion_percentage() == pytest.approx(0.2)

    toggled = store.toggle_completion(store.find_by_id("heat"))
    assert toggled.is_completed
    assert [item.id for item in store.completed_items()] == ["heat", "water"]
    assert len(store.incomplete_items()) == 3
    assert store.load_all()[0].id == "heat"


def test_safety_checklist_set_completed_unknown_id(tmp_path: Path) -> None:
    store = SafetyChecklistStore(tmp_path)
    store.seed_defaults_if_needed()
    with pytest.raises(RecordNotFoundError):
        store.set_completed("parachute", True)


# ---------------------------------------------------------------------------
# User preferences
# ---------------------------------------------------------------------------


def test_user_preference_is_a_singleton(tmp_path: Path, clock: TickingClock) -> None:
    store = UserPreferenceStore(tmp_path, clock=clock)
    assert store.current_preference() is None

    first = UserPreference(preferred_scenery=[SceneryType.SEA])
    store.save_current_preference(first)
    second = UserPreference(
        preferred_scenery=[SceneryType.MOUNTAIN, SceneryType.SUNRISE],
        preferred_difficulty=TrailDifficulty.CHALLENGING,
        preferred_duration=TimeRange(min_minutes=120, max_minutes=300),
        preferred_distance=DistanceRange(min_km=8.0, max_km=15.5),
        preferred_time_of_day=[TimeOfDay.EARLY_MORNING],
        fitness_level=FitnessLevel.ADVANCED,
    )
    saved = store.save_current_preference(second)

    assert saved.last_updated == BASE_TIME + timedelta(minutes=1)
    assert store.load_all() == [saved]
    assert store.current_preference() == saved
    assert saved.fitness_level.recommended_difficulty == [TrailDifficulty.MODERATE, TrailDifficulty.CHALLENGING]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_store_registry_builds_every_store_under_one_root(tmp_path: Path, clock: TickingClock) -> None:
    registry = StoreRegistry(StoreSettings(data_dir=str(tmp_path), compact_json=True), clock=clock)

    assert {store.file_path.parent for store in registry} == {tmp_path.resolve()}
    assert len({store.FILE_NAME for store in registry}) == 10

    registry.seed_defaults()

    report = registry.storage_report()
    assert report["offline_maps.json"] is not None
    assert report["achievements.json"] is not None
    assert report["safety_checklist_items.json"] is not None
    assert report["journals.json"] is None
    assert b"\n" not in registry.achievements.file_path.read_bytes()
