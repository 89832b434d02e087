from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import RecommendationRecord, UserAction
from .base import CollectionStore


class RecommendationRecordRecord(StoreRecord):
    id: uuid.UUID
    trail_id: uuid.UUID
    recommended_at: datetime
    user_action: UserAction | None = None
    recommendation_score: float = 0.0
    reason: str = ""


class RecommendationMapping:
    record_type = RecommendationRecordRecord

    def to_record(self, entity: RecommendationRecord) -> RecommendationRecordRecord:
        return RecommendationRecordRecord(
            id=entity.id,
            trail_id=entity.trail_id,
            recommended_at=entity.recommended_at,
            user_action=entity.user_action,
            recommendation_score=entity.recommendation_score,
            reason=entity.reason,
        )

    def to_entity(self, record: RecommendationRecordRecord) -> RecommendationRecord:
        return RecommendationRecord(
            id=record.id,
            trail_id=record.trail_id,
            recommended_at=record.recommended_at,
            user_action=record.user_action,
            recommendation_score=record.recommendation_score,
            reason=record.reason,
        )

    def key(self, record: RecommendationRecordRecord) -> uuid.UUID:
        return record.id


class RecommendationStore(CollectionStore[RecommendationRecord]):
    FILE_NAME = "recommendation_records.json"

    def __init__(self, root: Path, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, RecommendationMapping(), **engine_options),
            sort_key=lambda record: record.recommended_at.timestamp(),
            reverse=True,
        )

    def records_for_trail(self, trail_id: uuid.UUID) -> list[RecommendationRecord]:
        return self.filter(lambda record: record.trail_id == trail_id)

    def records_with_action(self, action: UserAction) -> list[RecommendationRecord]:
        return self.filter(lambda record: record.user_action == action)

    def most_recent_for_trail(self, trail_id: uuid.UUID) -> RecommendationRecord | None:
        return self.first(lambda record: record.trail_id == trail_id)
