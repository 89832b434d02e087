from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import EmergencyContact, LocationShareSession, utc_now
from .base import CollectionStore, timestamp_or_distant_past

logger = logging.getLogger(__name__)


class ContactSnapshotRecord(StoreRecord):
    """Copy of an emergency contact taken when the session was shared."""

    id: uuid.UUID
    name: str
    phone_number: str
    email: str | None = None
    is_primary: bool = False
    created_at: datetime


class LocationShareSessionRecord(StoreRecord):
    id: uuid.UUID
    is_active: bool = False
    started_at: datetime | None = None
    last_location_update: datetime | None = None
    last_location_latitude: float | None = None
    last_location_longitude: float | None = None
    share_link: str | None = None
    expires_at: datetime | None = None
    emergency_contacts: list[ContactSnapshotRecord] | None = None


class LocationShareSessionMapping:
    record_type = LocationShareSessionRecord

    def to_record(self, entity: LocationShareSession) -> LocationShareSessionRecord:
        contacts = None
        if entity.emergency_contacts is not None:
            contacts = [
                ContactSnapshotRecord(
                    id=contact.id,
                    name=contact.name,
                    phone_number=contact.phone_number,
                    email=contact.email,
                    is_primary=contact.is_primary,
                    created_at=contact.created_at,
                )
                for contact in entity.emergency_contacts
            ]
        return LocationShareSessionRecord(
            id=entity.id,
            is_active=entity.is_active,
            started_at=entity.started_at,
            last_location_update=entity.last_location_update,
            last_location_latitude=entity.last_location_latitude,
            last_location_longitude=entity.last_location_longitude,
            share_link=entity.share_link,
            expires_at=entity.expires_at,
            emergency_contacts=contacts,
        )

    def to_entity(self, record: LocationShareSessionRecord) -> LocationShareSession:
        contacts = None
        if record.emergency_contacts is not None:
            contacts = [
                EmergencyContact(
                    id=snapshot.id,
                    name=snapshot.name,
                    phone_number=snapshot.phone_number,
                    email=snapshot.email,
                    is_primary=snapshot.is_primary,
                    created_at=snapshot.created_at,
                )
                for snapshot in record.emergency_contacts
            ]
        return LocationShareSession(
            id=record.id,
            is_active=record.is_active,
            started_at=record.started_at,
            last_location_update=record.last_location_update,
            last_location_latitude=record.last_location_latitude,
            last_location_longitude=record.last_location_longitude,
            share_link=record.share_link,
            expires_at=record.expires_at,
            emergency_contacts=contacts,
        )

    def key(self, record: LocationShareSessionRecord) -> uuid.UUID:
        return record.id


class LocationShareSessionStore(CollectionStore[LocationShareSession]):
    """Location-share sessions, newest start first. At most one session is active."""

    FILE_NAME = "location_share_sessions.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, LocationShareSessionMapping(), **engine_options),
            sort_key=lambda session: timestamp_or_distant_past(session.started_at),
            reverse=True,
            clock=clock,
        )

    def active_session(self) -> LocationShareSession | None:
        return self.first(lambda session: session.is_active)

    def deactivate_all_sessions(self) -> int:
        """Clear the active flag everywhere in one write; returns how many sessions were active."""
        deactivated = 0

        def deactivate(sessions: list[LocationShareSession]) -> list[LocationShareSession]:
            nonlocal deactivated
            result = []
            for session in sessions:
                if session.is_active:
                    deactivated += 1
                    session = dataclasses.replace(session, is_active=False)
                result.append(session)
            return result

        self.engine.update(deactivate)
        logger.debug("Deactivated %d location share session(s)", deactivated)
        return deactivated

    def activate_session(self, session: LocationShareSession) -> LocationShareSession:
        """Make ``session`` the only active session, saving it if it is new.

        A session without ``started_at`` is stamped with the store clock.
        """
        target = dataclasses.replace(
            session,
            is_active=True,
            started_at=session.started_at or self._clock(),
        )

        def activate(sessions: list[LocationShareSession]) -> list[LocationShareSession]:
            result = [
                dataclasses.replace(existing, is_active=False)
                for existing in sessions
                if existing.id != target.id
            ]
            result.append(target)
            return result

        self.engine.update(activate)
        return target
