from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..errors import RecordNotFoundError
from ..identity import derive_uuid
from ..mapping import StoreRecord
from ..models import DEFAULT_ACHIEVEMENT_TEMPLATES, Achievement, BadgeType, utc_now
from .base import CollectionStore

logger = logging.getLogger(__name__)


class AchievementRecord(StoreRecord):
    id: str
    badge_type: BadgeType
    title: str
    achievement_description: str
    icon: str
    target_value: float
    current_value: float = 0.0
    is_unlocked: bool = False
    unlocked_at: datetime | None = None


class AchievementMapping:
    """Achievements are keyed by slugs like ``distance_10km``, resolved through ``derive_uuid``."""

    record_type = AchievementRecord

    def to_record(self, entity: Achievement) -> AchievementRecord:
        return AchievementRecord(
            id=entity.id,
            badge_type=entity.badge_type,
            title=entity.title,
            achievement_description=entity.achievement_description,
            icon=entity.icon,
            target_value=entity.target_value,
            current_value=entity.current_value,
            is_unlocked=entity.is_unlocked,
            unlocked_at=entity.unlocked_at,
        )

    def to_entity(self, record: AchievementRecord) -> Achievement:
        return Achievement(
            id=record.id,
            badge_type=record.badge_type,
            title=record.title,
            achievement_description=record.achievement_description,
            icon=record.icon,
            target_value=record.target_value,
            current_value=record.current_value,
            is_unlocked=record.is_unlocked,
            unlocked_at=record.unlocked_at,
        )

    def key(self, record: AchievementRecord) -> uuid.UUID:
        return derive_uuid(record.id)


class AchievementStore(CollectionStore[Achievement]):
    """Achievement progress, grouped by badge type then ordered by target."""

    FILE_NAME = "achievements.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, AchievementMapping(), **engine_options),
            sort_key=lambda achievement: (achievement.badge_type.value, achievement.target_value),
            clock=clock,
        )

    def find_by_id(self, achievement_id: str) -> Achievement | None:
        return self.engine.get(derive_uuid(achievement_id))

    def update_progress(self, achievement_id: str, value: float) -> Achievement:
        """Record new progress, unlocking the achievement once it reaches its target.

        Raises:
            RecordNotFoundError: If no achievement has ``achievement_id``.
        """
        achievement = self._require(achievement_id)
        achievement.update_progress(value, at=self._clock())
        self.save_or_update(achievement)
        return achievement

    def unlock(self, achievement_id: str) -> Achievement:
        """Unlock an achievement regardless of its progress.

        Raises:
            RecordNotFoundError: If no achievement has ``achievement_id``.
        """
        achievement = self._require(achievement_id)
        achievement.unlock(at=self._clock())
        self.save_or_update(achievement)
        return achievement

    def ensure_defaults(self) -> list[Achievement]:
        """Backfill every default achievement whose id is missing, in one write.

        Existing achievements, and the progress recorded on them, are kept.

        Returns:
            The achievements that were added.
        """
        added: list[Achievement] = []

        def backfill(achievements: list[Achievement]) -> list[Achievement]:
            present = {achievement.id for achievement in achievements}
            added.extend(
                template.create_achievement()
                for template in DEFAULT_ACHIEVEMENT_TEMPLATES
                if template.id not in present
            )
            return achievements + added

        self.engine.update(backfill)
        if added:
            logger.info("Added %d default achievement(s)", len(added))
        return added

    def _require(self, achievement_id: str) -> Achievement:
        achievement = self.find_by_id(achievement_id)
        if achievement is None:
            raise RecordNotFoundError(f"No achievement with id {achievement_id!r}", path=self.file_path)
        return achievement
