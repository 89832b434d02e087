from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import AVAILABLE_REGIONS, DownloadStatus, OfflineMapRegion, utc_now
from .base import CollectionStore

logger = logging.getLogger(__name__)


class OfflineRegionRecord(StoreRecord):
    id: uuid.UUID
    name: str
    download_status: DownloadStatus = DownloadStatus.NOT_DOWNLOADED
    download_progress: float = 0.0
    downloaded_size: int = 0
    total_size: int = 0
    downloaded_at: datetime | None = None
    last_updated: datetime


class OfflineRegionMapping:
    record_type = OfflineRegionRecord

    def to_record(self, entity: OfflineMapRegion) -> OfflineRegionRecord:
        return OfflineRegionRecord(
            id=entity.id,
            name=entity.name,
            download_status=entity.download_status,
            download_progress=entity.download_progress,
            downloaded_size=entity.downloaded_size,
            total_size=entity.total_size,
            downloaded_at=entity.downloaded_at,
            last_updated=entity.last_updated,
        )

    def to_entity(self, record: OfflineRegionRecord) -> OfflineMapRegion:
        return OfflineMapRegion(
            id=record.id,
            name=record.name,
            download_status=record.download_status,
            download_progress=record.download_progress,
            downloaded_size=record.downloaded_size,
            total_size=record.total_size,
            downloaded_at=record.downloaded_at,
            last_updated=record.last_updated,
        )

    def key(self, record: OfflineRegionRecord) -> uuid.UUID:
        return record.id


class OfflineMapStore(CollectionStore[OfflineMapRegion]):
    """Download state of offline map regions, ordered by region name."""

    FILE_NAME = "offline_maps.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, OfflineRegionMapping(), **engine_options),
            sort_key=lambda region: region.name,
            clock=clock,
        )

    def region_named(self, name: str) -> OfflineMapRegion | None:
        return self.first(lambda region: region.name == name)

    def update_region(self, region: OfflineMapRegion) -> OfflineMapRegion:
        updated = dataclasses.replace(region, last_updated=self._clock())
        self.save_or_update(updated)
        return updated

    def seed_defaults_if_needed(self) -> list[OfflineMapRegion]:
        """Create one region per entry of ``AVAILABLE_REGIONS`` when the collection is empty.

        Returns:
            The regions that were created; empty if the collection already had entries.
        """
        existing = self.engine.load_all()
        if existing:
            logger.debug("Found %d existing offline regions, skipping seed", len(existing))
            return []
        now = self._clock()
        regions = [OfflineMapRegion(name=name, last_updated=now) for name in AVAILABLE_REGIONS]
        self.save_all(regions)
        logger.info("Seeded %d offline map regions", len(regions))
        return regions
