from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, TypeVar

from ..config import Settings
from ..core.constants import UNKNOWN_CLASS_TYPE
from ..core.errors import ConflictError, NotFoundError, VersionConflictError
from ..db import schemas
from ..domain import ClassStatus, Member, ScheduledClass, SlotKey
from ..store import BaseDocumentStore, DocumentNotFoundError, eq, new_document_id, one_of
from ..store.codecs import decode_class, encode_class
from .class_type_service import ClassTypeCatalog
from .notifications import BaseNotifier, NotificationOutcome, Recipient, deliver
from .user_service import UserDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ClassRoster:
    """Owns class documents and their embedded member lists.

    Every mutation is a read-modify-write guarded by the document version:
    on a concurrent write the class is re-read and the change re-applied, up
    to ``class_write_attempts`` times, before a ConflictError is raised.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        class_types: ClassTypeCatalog,
        users: UserDirectory,
        notifier: BaseNotifier,
        settings: Settings,
    ) -> None:
        self._store = store
        self._class_types = class_types
        self._users = users
        self._notifier = notifier
        self._settings = settings
        self._collection = settings.classes_collection

    def _load(self, class_id: str) -> tuple[ScheduledClass, int]:
        try:
            document = self._store.get(self._collection, class_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError("Class not found") from exc
        return decode_class(document), document.version

    def _mutate(
        self, class_id: str, change: Callable[[ScheduledClass], T]
    ) -> tuple[ScheduledClass, T]:
        attempts = max(1, self._settings.class_write_attempts)
        for attempt in range(1, attempts + 1):
            scheduled, version = self._load(class_id)
            result = change(scheduled)
            try:
                self._store.update(
                    self._collection,
                    class_id,
                    encode_class(scheduled),
                    expected_version=version,
                )
            except VersionConflictError:
                logger.info(
                    "Class changed concurrently, retrying",
                    extra={"class_id": class_id, "attempt": attempt},
                )
                continue
            except DocumentNotFoundError as exc:
                raise NotFoundError("Class not found") from exc
            return scheduled, result
        logger.warning(
            "Giving up on class update after %s attempts", attempts, extra={"class_id": class_id}
        )
        raise ConflictError("Class was modified concurrently, please try again")

    def get_class(self, class_id: str) -> ScheduledClass:
        return self._load(class_id)[0]

    def create_class(
        self,
        class_type: str,
        day: str,
        time: str,
        *,
        initial_members: Iterable[tuple[str, str]] = (),
        total_spots: int | None = None,
    ) -> ScheduledClass:
        class_type_id = self._class_types.resolve(class_type).id
        slot = SlotKey.of(day, time)
        now = _utc_now()
        scheduled = ScheduledClass(
            id=new_document_id(),
            class_type_id=class_type_id,
            day=slot.day,
            time=slot.time,
            total_spots=self._settings.default_total_spots if total_spots is None else total_spots,
            members=[
                Member(user_id=user_id, name=name, joined_at=now)
                for user_id, name in initial_members
            ],
            created_at=now,
        )
        self._store.create(self._collection, scheduled.id, encode_class(scheduled))
        logger.info(
            "Class created",
            extra={"class_id": scheduled.id, "members": scheduled.member_count},
        )
        return scheduled

    def join_class(
        self,
        class_id: str,
        user_id: str,
        name: str,
        *,
        email: str | None = None,
        phone: str | None = None,
    ) -> ScheduledClass:
        scheduled, _ = self._mutate(class_id, lambda c: c.add_member(user_id, name))
        logger.info(
            "User joined class",
            extra={"class_id": class_id, "user_id": user_id, "spots_left": scheduled.spots_left},
        )
        recipient = self._users.find_recipient(user_id, name=name, email=email, phone=phone)
        self.notify_enrollment(scheduled, recipient)
        return scheduled

    def leave_class(self, class_id: str, user_id: str) -> ScheduledClass:
        scheduled, _ = self._mutate(class_id, lambda c: c.remove_member(user_id))
        logger.info(
            "User left class",
            extra={"class_id": class_id, "user_id": user_id, "spots_left": scheduled.spots_left},
        )
        return scheduled

    def update_class(
        self,
        class_id: str,
        *,
        day: str | None = None,
        time: str | None = None,
        class_type_id: str | None = None,
        total_spots: int | None = None,
    ) -> ScheduledClass:
        if class_type_id is not None:
            class_type_id = self._class_types.get(class_type_id).id

        def change(scheduled: ScheduledClass) -> None:
            if day is not None or time is not None:
                slot = SlotKey.of(
                    day if day is not None else scheduled.day,
                    time if time is not None else scheduled.time,
                )
                scheduled.reschedule(day=slot.day, time=slot.time, class_type_id=class_type_id)
            else:
                scheduled.reschedule(class_type_id=class_type_id)
            if total_spots is not None:
                scheduled.resize(total_spots)

        scheduled, _ = self._mutate(class_id, change)
        logger.info("Class updated", extra={"class_id": class_id})
        return scheduled

    def cancel_class(self, class_id: str, reason: str | None = None) -> ScheduledClass:
        scheduled, _ = self._mutate(class_id, lambda c: c.cancel(reason))
        logger.info("Class cancelled", extra={"class_id": class_id})
        return scheduled

    def reactivate_class(self, class_id: str) -> ScheduledClass:
        scheduled, _ = self._mutate(class_id, lambda c: c.reactivate())
        logger.info("Class reactivated", extra={"class_id": class_id})
        return scheduled

    def delete_class(self, class_id: str) -> None:
        try:
            self._store.delete(self._collection, class_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError("Class not found") from exc
        logger.info("Class deleted", extra={"class_id": class_id})

    def describe(
        self,
        scheduled: ScheduledClass,
        class_types: dict[str, schemas.ClassType] | None = None,
    ) -> schemas.ClassOut:
        if class_types is None:
            class_type = self._class_types.find(scheduled.class_type_id)
        else:
            class_type = class_types.get(scheduled.class_type_id)
        if class_type is None:
            return schemas.ClassOut.from_class(scheduled, class_type_name=UNKNOWN_CLASS_TYPE)
        return schemas.ClassOut.from_class(scheduled, class_type=class_type)

    def get_class_details(self, class_id: str) -> schemas.ClassOut:
        return self.describe(self.get_class(class_id))

    def _query(self, filters: list) -> list[ScheduledClass]:
        return [decode_class(doc) for doc in self._store.list(self._collection, filters)]

    def list_available(self, category: str | None = None) -> list[schemas.ClassOut]:
        filters = [eq("status", ClassStatus.active.value)]
        if category and category != "all":
            class_type_ids = self._class_types.ids_for_category(category)
            if not class_type_ids:
                logger.info("No class types found for category", extra={"category": category})
                return []
            filters.append(one_of("classTypeId", class_type_ids))
        class_types = {ct.id: ct for ct in self._class_types.list_all()}
        return [self.describe(scheduled, class_types) for scheduled in self._query(filters)]

    def list_all(
        self,
        *,
        category: str | None = None,
        status: str | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[schemas.ClassOut], int]:
        filters = []
        if category and category != "all":
            filters.append(one_of("classTypeId", self._class_types.ids_for_category(category)))
        if status and status != "all":
            filters.append(eq("status", status))
        classes = sorted(self._query(filters), key=lambda c: c.created_at, reverse=True)
        class_types = {ct.id: ct for ct in self._class_types.list_all()}
        page = classes[offset : offset + limit]
        return [self.describe(scheduled, class_types) for scheduled in page], len(classes)

    def classes_on(self, day: str) -> list[ScheduledClass]:
        return self._query([eq("status", ClassStatus.active.value), eq("day", day)])

    def enrolled_user_ids(self, class_type_id: str, day: str, time: str) -> set[str]:
        """Users already holding a spot in an active class of this type and slot."""
        classes = self._query(
            [
                eq("status", ClassStatus.active.value),
                eq("classTypeId", class_type_id),
                eq("day", day),
                eq("time", time),
            ]
        )
        return {member.user_id for scheduled in classes for member in scheduled.members}

    def _class_context(self, scheduled: ScheduledClass) -> dict:
        class_type = self._class_types.find(scheduled.class_type_id)
        return {
            "classType": class_type.name if class_type else UNKNOWN_CLASS_TYPE,
            "day": scheduled.day,
            "time": scheduled.time,
            "currentEnrollment": scheduled.member_count,
            "totalSpots": scheduled.total_spots,
            "fillRate": round(scheduled.fill_rate),
            "isFull": scheduled.is_full,
            "appUrl": self._settings.app_url,
        }

    def notify_enrollment(
        self, scheduled: ScheduledClass, recipient: Recipient
    ) -> list[NotificationOutcome]:
        context = {
            **self._class_context(scheduled),
            "userName": recipient.name,
            "userEmail": recipient.email,
            "userPhone": recipient.phone,
        }
        outcomes = [deliver(self._notifier, recipient, "class_join_confirmation", context)]
        if self._settings.operator_email:
            operator = Recipient(name="Operator", email=self._settings.operator_email)
            outcomes.append(deliver(self._notifier, operator, "operator_enrollment", context))
        return outcomes

    def notify_match(
        self, scheduled: ScheduledClass, recipients: Iterable[Recipient]
    ) -> list[NotificationOutcome]:
        context = self._class_context(scheduled)
        outcomes = []
        for recipient in recipients:
            personal = {**context, "userName": recipient.name}
            outcomes.append(deliver(self._notifier, recipient, "match_found", personal))
            outcomes.append(
                deliver(self._notifier, recipient, "class_join_confirmation", personal)
            )
        return outcomes

    def send_reminder(
        self, class_id: str, message: str | None = None
    ) -> list[NotificationOutcome]:
        scheduled = self.get_class(class_id)
        context = {**self._class_context(scheduled), "message": message}
        outcomes = []
        for member in scheduled.members:
            recipient = self._users.find_recipient(member.user_id, name=member.name)
            outcomes.append(
                deliver(
                    self._notifier,
                    recipient,
                    "class_reminder",
                    {**context, "userName": recipient.name},
                )
            )
        logger.info(
            "Class reminders sent", extra={"class_id": class_id, "recipients": len(outcomes)}
        )
        return outcomes
