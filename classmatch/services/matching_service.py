from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from ..config import Settings
from ..core.constants import MIN_CLASS_SIZE
from ..db import schemas
from ..domain import AvailabilitySlot, AvailabilityStatus, ScheduledClass, SlotKey, unique_slots
from ..store import BaseDocumentStore, contains, eq, new_document_id
from ..store.codecs import decode_availability, encode_availability
from .class_type_service import ClassTypeCatalog
from .roster_service import ClassRoster
from .user_service import UserDirectory

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _first_per_user(
    availabilities: Iterable[AvailabilitySlot], exclude_user_id: str | None
) -> list[schemas.Match]:
    matches: dict[str, schemas.Match] = {}
    for availability in availabilities:
        if availability.user_id == exclude_user_id:
            continue
        matches.setdefault(
            availability.user_id,
            schemas.Match(user_id=availability.user_id, availability_id=availability.id),
        )
    return list(matches.values())


@dataclass(slots=True)
class SweepResult:
    availability_id: str
    user_id: str
    formed_class_ids: list[str] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "availabilityId": self.availability_id,
            "userId": self.user_id,
            "formedClassIds": list(self.formed_class_ids),
        }


class AvailabilityMatcher:
    """Stores availability submissions and turns overlapping ones into classes.

    A slot shared by at least ``MIN_CLASS_SIZE`` users forms a class seeded
    with all of them. Every active availability document of a participant
    that covers the slot is archived with the new class id, so the same slot
    is never matched twice.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        class_types: ClassTypeCatalog,
        roster: ClassRoster,
        users: UserDirectory,
        settings: Settings,
    ) -> None:
        self._store = store
        self._class_types = class_types
        self._roster = roster
        self._users = users
        self._settings = settings
        self._collection = settings.availability_collection

    def submit_availability(
        self,
        user_id: str,
        class_type: str,
        slots: Iterable[SlotKey],
        *,
        check_for_matches: bool = False,
    ) -> tuple[AvailabilitySlot, list[ScheduledClass]]:
        class_type_id = self._class_types.resolve(class_type).id
        availability = AvailabilitySlot(
            id=new_document_id(),
            user_id=user_id,
            class_type_id=class_type_id,
            slots=unique_slots(slots),
            created_at=_utc_now(),
        )
        self._store.create(self._collection, availability.id, encode_availability(availability))
        logger.info(
            "Availability submitted",
            extra={
                "availability_id": availability.id,
                "user_id": user_id,
                "slots": len(availability.slots),
            },
        )
        formed: list[ScheduledClass] = []
        if check_for_matches:
            formed = self.check_for_matches(user_id, class_type_id, availability.slots)
        return availability, formed

    def _active_covering(self, class_type_id: str, slot: SlotKey) -> list[AvailabilitySlot]:
        documents = self._store.list(
            self._collection,
            [
                eq("classTypeId", class_type_id),
                eq("status", AvailabilityStatus.active.value),
                contains("availabilities", str(slot)),
            ],
        )
        enrolled = self._roster.enrolled_user_ids(class_type_id, slot.day, slot.time)
        availabilities = [decode_availability(document) for document in documents]
        return [
            availability
            for availability in availabilities
            if availability.user_id not in enrolled
        ]

    def find_matches(
        self, class_type: str, slot: SlotKey, exclude_user_id: str | None = None
    ) -> list[schemas.Match]:
        class_type_id = self._class_types.resolve(class_type).id
        return _first_per_user(self._active_covering(class_type_id, slot), exclude_user_id)

    def check_for_matches(
        self, user_id: str, class_type_id: str, slots: Iterable[SlotKey]
    ) -> list[ScheduledClass]:
        formed = []
        for slot in slots:
            covering = self._active_covering(class_type_id, slot)
            if not any(availability.user_id == user_id for availability in covering):
                # consumed by an earlier match, or the submitter is already enrolled
                continue
            matches = _first_per_user(covering, user_id)
            if len(matches) < MIN_CLASS_SIZE - 1:
                logger.debug(
                    "Not enough matches for slot",
                    extra={"slot": str(slot), "matches": len(matches)},
                )
                continue
            formed.append(self._form_class(user_id, class_type_id, slot, covering, matches))
        return formed

    def _form_class(
        self,
        user_id: str,
        class_type_id: str,
        slot: SlotKey,
        covering: list[AvailabilitySlot],
        matches: list[schemas.Match],
    ) -> ScheduledClass:
        participants = [user_id] + [match.user_id for match in matches]
        recipients = [self._users.find_recipient(participant) for participant in participants]
        scheduled = self._roster.create_class(
            class_type_id,
            slot.day,
            slot.time,
            initial_members=[(recipient.user_id, recipient.name) for recipient in recipients],
            total_spots=max(self._settings.default_total_spots, len(participants)),
        )
        self._archive(covering, scheduled.id)
        logger.info(
            "Class formed from matching availability",
            extra={"class_id": scheduled.id, "slot": str(slot), "members": len(participants)},
        )
        self._roster.notify_match(scheduled, recipients)
        return scheduled

    def _archive(self, availabilities: Iterable[AvailabilitySlot], class_id: str) -> None:
        now = _utc_now()
        for availability in availabilities:
            availability.status = AvailabilityStatus.archived
            availability.archived_at = now
            availability.class_id = class_id
            self._store.update(
                self._collection, availability.id, encode_availability(availability)
            )

    def get_user_availability(self, user_id: str) -> list[AvailabilitySlot]:
        documents = self._store.list(
            self._collection,
            [eq("userId", user_id), eq("status", AvailabilityStatus.active.value)],
        )
        return [decode_availability(document) for document in documents]

    def sweep(self) -> list[SweepResult]:
        results = []
        for document in self._store.list(
            self._collection, [eq("status", AvailabilityStatus.active.value)]
        ):
            availability = decode_availability(document)
            formed = self.check_for_matches(
                availability.user_id, availability.class_type_id, availability.slots
            )
            results.append(
                SweepResult(
                    availability_id=availability.id,
                    user_id=availability.user_id,
                    formed_class_ids=[scheduled.id for scheduled in formed],
                )
            )
        logger.info(
            "Match sweep finished",
            extra={
                "checked": len(results),
                "formed": sum(len(result.formed_class_ids) for result in results),
            },
        )
        return results
