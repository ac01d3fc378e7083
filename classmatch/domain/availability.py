from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Iterable

from ..core.constants import WEEKDAYS
from ..core.errors import ValidationError


class AvailabilityStatus(str, PyEnum):
    active = "active"
    archived = "archived"


@dataclass(frozen=True, slots=True)
class SlotKey:
    """A recurring weekly ``(day, time)`` window, serialized as ``"Day-Time"``."""

    day: str
    time: str

    @classmethod
    def of(cls, day: str, time: str) -> SlotKey:
        day_clean = (day or "").strip().title()
        if day_clean not in WEEKDAYS:
            raise ValidationError(f"Unknown day: {day!r}")
        time_clean = " ".join((time or "").split()).upper()
        if not time_clean:
            raise ValidationError("time is required")
        return cls(day=day_clean, time=time_clean)

    @classmethod
    def parse(cls, raw: str) -> SlotKey:
        day, sep, time = (raw or "").partition("-")
        if not sep:
            raise ValidationError(f"Availability slot must look like 'Day-Time', got {raw!r}")
        return cls.of(day, time)

    def __str__(self) -> str:
        return f"{self.day}-{self.time}"


def unique_slots(slots: Iterable[SlotKey]) -> tuple[SlotKey, ...]:
    seen: dict[SlotKey, None] = {}
    for slot in slots:
        seen.setdefault(slot, None)
    return tuple(seen)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AvailabilitySlot:
    id: str
    user_id: str
    class_type_id: str
    slots: tuple[SlotKey, ...]
    status: AvailabilityStatus = AvailabilityStatus.active
    created_at: datetime = field(default_factory=_utc_now)
    archived_at: datetime | None = None
    class_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == AvailabilityStatus.active

    def covers(self, slot: SlotKey) -> bool:
        return slot in self.slots
