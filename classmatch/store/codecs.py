"""Conversion between stored documents and the domain aggregates.

Documents hold camelCase JSON with ISO-8601 timestamps. Older class documents
stored each member as a JSON-encoded string; those are decoded here so the
rest of the code only ever sees :class:`~classmatch.domain.Member` values.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from ..core.errors import ValidationError
from ..domain import (
    AvailabilitySlot,
    AvailabilityStatus,
    ClassStatus,
    Member,
    ScheduledClass,
    SlotKey,
)
from .base import StoredDocument

logger = logging.getLogger(__name__)


def _dump_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _load_dt(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def encode_member(member: Member) -> dict[str, Any]:
    return {
        "userId": member.user_id,
        "name": member.name,
        "joinedAt": _dump_dt(member.joined_at),
    }


def decode_member(raw: Any, *, fallback_joined_at: datetime) -> Member | None:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Skipping undecodable member entry", extra={"member": raw})
            return None
    if not isinstance(raw, dict) or not raw.get("userId"):
        logger.warning("Skipping malformed member entry", extra={"member": raw})
        return None
    return Member(
        user_id=str(raw["userId"]),
        name=raw.get("name") or "",
        joined_at=_load_dt(raw.get("joinedAt")) or fallback_joined_at,
    )


def encode_class(scheduled: ScheduledClass) -> dict[str, Any]:
    return {
        "classTypeId": scheduled.class_type_id,
        "day": scheduled.day,
        "time": scheduled.time,
        "members": [encode_member(member) for member in scheduled.members],
        "totalSpots": scheduled.total_spots,
        "spotsLeft": scheduled.spots_left,
        "status": scheduled.status.value,
        "createdAt": _dump_dt(scheduled.created_at),
        "cancelledAt": _dump_dt(scheduled.cancelled_at),
        "cancelReason": scheduled.cancel_reason,
        "reactivatedAt": _dump_dt(scheduled.reactivated_at),
    }


def decode_class(document: StoredDocument) -> ScheduledClass:
    data = document.data
    created_at = _load_dt(data.get("createdAt")) or document.created_at
    members = [
        member
        for member in (
            decode_member(raw, fallback_joined_at=created_at)
            for raw in data.get("members") or []
        )
        if member is not None
    ]
    # spotsLeft is a cache; it is recomputed from totalSpots and members
    return ScheduledClass.restore(
        id=document.id,
        class_type_id=data.get("classTypeId") or "",
        day=data.get("day") or "",
        time=data.get("time") or "",
        total_spots=int(data.get("totalSpots") or 0),
        members=members,
        status=ClassStatus(data.get("status") or ClassStatus.active.value),
        created_at=created_at,
        cancelled_at=_load_dt(data.get("cancelledAt")),
        cancel_reason=data.get("cancelReason"),
        reactivated_at=_load_dt(data.get("reactivatedAt")),
    )


def encode_availability(availability: AvailabilitySlot) -> dict[str, Any]:
    return {
        "userId": availability.user_id,
        "classTypeId": availability.class_type_id,
        "availabilities": [str(slot) for slot in availability.slots],
        "status": availability.status.value,
        "createdAt": _dump_dt(availability.created_at),
        "archivedAt": _dump_dt(availability.archived_at),
        "classId": availability.class_id,
    }


def decode_slots(raw_slots: Any, *, document_id: str) -> tuple[SlotKey, ...]:
    slots = []
    for raw in raw_slots or []:
        try:
            slots.append(SlotKey.parse(raw))
        except (ValidationError, TypeError, AttributeError):
            logger.warning(
                "Skipping undecodable availability slot",
                extra={"availability_id": document_id, "slot": raw},
            )
    return tuple(slots)


def decode_availability(document: StoredDocument) -> AvailabilitySlot:
    data = document.data
    return AvailabilitySlot(
        id=document.id,
        user_id=data.get("userId") or "",
        class_type_id=data.get("classTypeId") or "",
        slots=decode_slots(data.get("availabilities"), document_id=document.id),
        status=AvailabilityStatus(data.get("status") or AvailabilityStatus.active.value),
        created_at=_load_dt(data.get("createdAt")) or document.created_at,
        archived_at=_load_dt(data.get("archivedAt")),
        class_id=data.get("classId"),
    )
