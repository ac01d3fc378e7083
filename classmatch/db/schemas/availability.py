from datetime import datetime

from pydantic import Field, field_validator

from ...core.errors import ValidationError
from ...domain import AvailabilitySlot, SlotKey
from .base import CamelModel


def _parse_slot(value) -> SlotKey:
    if isinstance(value, SlotKey):
        return value
    try:
        if isinstance(value, dict):
            return SlotKey.of(value.get("day"), value.get("time"))
        return SlotKey.parse(str(value))
    except ValidationError as exc:
        raise ValueError(exc.message) from exc


class AvailabilitySubmit(CamelModel):
    user_id: str = Field(min_length=1)
    class_type: str = Field(min_length=1)
    availabilities: list[SlotKey] = Field(min_length=1)
    check_for_matches: bool = False

    @field_validator("availabilities", mode="before")
    @classmethod
    def _parse_availabilities(cls, value):
        if not isinstance(value, list):
            raise ValueError("availabilities must be a list")
        return [_parse_slot(item) for item in value]


class MatchQuery(CamelModel):
    class_type: str = Field(min_length=1)
    day: str
    time: str
    exclude_user_id: str | None = None


class Match(CamelModel):
    user_id: str
    availability_id: str


class AvailabilityOut(CamelModel):
    id: str
    user_id: str
    class_type_id: str
    availabilities: list[str]
    status: str
    created_at: datetime
    archived_at: datetime | None = None
    class_id: str | None = None

    @classmethod
    def from_availability(cls, availability: AvailabilitySlot) -> "AvailabilityOut":
        return cls(
            id=availability.id,
            user_id=availability.user_id,
            class_type_id=availability.class_type_id,
            availabilities=[str(slot) for slot in availability.slots],
            status=availability.status.value,
            created_at=availability.created_at,
            archived_at=availability.archived_at,
            class_id=availability.class_id,
        )
