from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from enum import Enum as PyEnum
from typing import Iterable

from ..core.constants import DEFAULT_CANCEL_REASON
from ..core.errors import (
    AlreadyJoinedError,
    ClassFullError,
    ClassNotActiveError,
    NotEnrolledError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ClassStatus(str, PyEnum):
    active = "active"
    cancelled = "cancelled"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Member:
    user_id: str
    name: str
    joined_at: datetime


class ScheduledClass:
    """A class aggregate: schedule, capacity, status and its embedded roster.

    The member list is only reachable as a tuple; every change goes through
    the methods below so ``spots_left`` always equals
    ``total_spots - len(members)`` and no user is enrolled twice.
    """

    def __init__(
        self,
        *,
        id: str,
        class_type_id: str,
        day: str,
        time: str,
        total_spots: int,
        members: Iterable[Member] = (),
        status: ClassStatus = ClassStatus.active,
        created_at: datetime | None = None,
        cancelled_at: datetime | None = None,
        cancel_reason: str | None = None,
        reactivated_at: datetime | None = None,
    ) -> None:
        member_list = list(members)
        _check_capacity(total_spots, len(member_list))
        user_ids = [member.user_id for member in member_list]
        if len(set(user_ids)) != len(user_ids):
            raise ValidationError("A user can be enrolled in a class only once")
        self._assign(
            id=id,
            class_type_id=class_type_id,
            day=day,
            time=time,
            total_spots=total_spots,
            members=member_list,
            status=status,
            created_at=created_at,
            cancelled_at=cancelled_at,
            cancel_reason=cancel_reason,
            reactivated_at=reactivated_at,
        )

    @classmethod
    def restore(
        cls, *, total_spots: int, members: Iterable[Member] = (), **fields
    ) -> ScheduledClass:
        """Rebuild a stored class without rejecting rosters that break the capacity rules.

        Documents written before the version check could hold more members than
        spots, or the same user twice. Repeated users keep their first entry; an
        over-full roster is kept as is so members can still leave.
        """
        member_list: list[Member] = []
        seen: set[str] = set()
        for member in members:
            if member.user_id in seen:
                logger.warning(
                    "Dropping repeated member of stored class",
                    extra={"class_id": fields.get("id"), "user_id": member.user_id},
                )
                continue
            seen.add(member.user_id)
            member_list.append(member)
        if len(member_list) > total_spots:
            logger.warning(
                "Stored class holds more members than spots",
                extra={
                    "class_id": fields.get("id"),
                    "members": len(member_list),
                    "total_spots": total_spots,
                },
            )
        scheduled = cls.__new__(cls)
        scheduled._assign(total_spots=total_spots, members=member_list, **fields)
        return scheduled

    def _assign(
        self,
        *,
        id: str,
        class_type_id: str,
        day: str,
        time: str,
        total_spots: int,
        members: list[Member],
        status: ClassStatus = ClassStatus.active,
        created_at: datetime | None = None,
        cancelled_at: datetime | None = None,
        cancel_reason: str | None = None,
        reactivated_at: datetime | None = None,
    ) -> None:
        self.id = id
        self.class_type_id = class_type_id
        self.day = day
        self.time = time
        self.status = ClassStatus(status)
        self.created_at = created_at or _utc_now()
        self.cancelled_at = cancelled_at
        self.cancel_reason = cancel_reason
        self.reactivated_at = reactivated_at
        self._total_spots = total_spots
        self._members = members

    def __repr__(self) -> str:
        return (
            f"<ScheduledClass(id={self.id}, day={self.day}, time={self.time}, "
            f"members={self.member_count}/{self._total_spots}, status={self.status.value})>"
        )

    @property
    def members(self) -> tuple[Member, ...]:
        return tuple(self._members)

    @property
    def member_count(self) -> int:
        return len(self._members)

    @property
    def total_spots(self) -> int:
        return self._total_spots

    @property
    def spots_left(self) -> int:
        return self._total_spots - len(self._members)

    @property
    def is_full(self) -> bool:
        return len(self._members) >= self._total_spots

    @property
    def is_active(self) -> bool:
        return self.status == ClassStatus.active

    @property
    def fill_rate(self) -> float:
        if self._total_spots <= 0:
            return 0.0
        return len(self._members) / self._total_spots * 100

    def has_member(self, user_id: str) -> bool:
        return any(member.user_id == user_id for member in self._members)

    def _require_active(self) -> None:
        if not self.is_active:
            raise ClassNotActiveError()

    def add_member(self, user_id: str, name: str, *, joined_at: datetime | None = None) -> Member:
        self._require_active()
        if self.is_full:
            raise ClassFullError()
        if self.has_member(user_id):
            raise AlreadyJoinedError()
        member = Member(user_id=user_id, name=name, joined_at=joined_at or _utc_now())
        self._members.append(member)
        return member

    def remove_member(self, user_id: str) -> Member:
        self._require_active()
        for index, member in enumerate(self._members):
            if member.user_id == user_id:
                return self._members.pop(index)
        raise NotEnrolledError()

    def resize(self, total_spots: int) -> None:
        self._require_active()
        _check_capacity(total_spots, len(self._members))
        self._total_spots = total_spots

    def reschedule(
        self,
        *,
        day: str | None = None,
        time: str | None = None,
        class_type_id: str | None = None,
    ) -> None:
        self._require_active()
        if day is not None:
            self.day = day
        if time is not None:
            self.time = time
        if class_type_id is not None:
            self.class_type_id = class_type_id

    def cancel(self, reason: str | None = None, *, now: datetime | None = None) -> None:
        self.status = ClassStatus.cancelled
        self.cancelled_at = now or _utc_now()
        self.cancel_reason = reason or DEFAULT_CANCEL_REASON

    def reactivate(self, *, now: datetime | None = None) -> None:
        self.status = ClassStatus.active
        self.reactivated_at = now or _utc_now()


def _check_capacity(total_spots: int, member_count: int) -> None:
    if total_spots < 0:
        raise ValidationError("totalSpots must not be negative")
    if member_count > total_spots:
        raise ValidationError(
            f"totalSpots ({total_spots}) cannot be lower than the number of members ({member_count})"
        )
