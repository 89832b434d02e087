from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..engine import FileStore
from ..mapping import StoreRecord
from ..models import EmergencyContact, utc_now
from .base import CollectionStore


class EmergencyContactRecord(StoreRecord):
    id: uuid.UUID
    name: str
    phone_number: str
    email: str | None = None
    is_primary: bool = False
    created_at: datetime


class EmergencyContactMapping:
    record_type = EmergencyContactRecord

    def to_record(self, entity: EmergencyContact) -> EmergencyContactRecord:
        return EmergencyContactRecord(
            id=entity.id,
            name=entity.name,
            phone_number=entity.phone_number,
            email=entity.email,
            is_primary=entity.is_primary,
            created_at=entity.created_at,
        )

    def to_entity(self, record: EmergencyContactRecord) -> EmergencyContact:
        return EmergencyContact(
            id=record.id,
            name=record.name,
            phone_number=record.phone_number,
            email=record.email,
            is_primary=record.is_primary,
            created_at=record.created_at,
        )

    def key(self, record: EmergencyContactRecord) -> uuid.UUID:
        return record.id


class EmergencyContactStore(CollectionStore[EmergencyContact]):
    """Emergency contacts, primary first and then oldest first."""

    FILE_NAME = "emergency_contacts.json"

    def __init__(self, root: Path, *, clock: Callable[[], datetime] = utc_now, **engine_options: bool | int) -> None:
        super().__init__(
            FileStore(root, self.FILE_NAME, EmergencyContactMapping(), **engine_options),
            sort_key=lambda contact: (not contact.is_primary, contact.created_at.timestamp()),
            clock=clock,
        )

    def primary_contact(self) -> EmergencyContact | None:
        return self.first(lambda contact: contact.is_primary)

    def set_primary_contact(self, contact: EmergencyContact) -> EmergencyContact:
        """Make ``contact`` the only primary contact, saving it if it is new.

        Clearing the old flag and setting the new one happen in a single write,
        so the file never holds zero or two primaries after a failure.
        """
        target = dataclasses.replace(contact, is_primary=True)

        def promote(contacts: list[EmergencyContact]) -> list[EmergencyContact]:
            result: list[EmergencyContact] = []
            found = False
            for existing in contacts:
                if existing.id == target.id:
                    result.append(target)
                    found = True
                else:
                    result.append(dataclasses.replace(existing, is_primary=False))
            if not found:
                result.append(target)
            return result

        self.engine.update(promote)
        return target
