import json
from datetime import datetime

from pydantic import Field, field_validator, model_validator

from ...domain import Member, ScheduledClass
from .base import CamelModel
from .class_type import ClassType


class InitialMember(CamelModel):
    user_id: str = Field(min_length=1)
    name: str = ""


class ClassCreate(CamelModel):
    class_type_id: str | None = None
    class_type: str | None = None
    day: str
    time: str
    total_spots: int | None = Field(default=None, ge=0)
    initial_members: list[InitialMember] = Field(default_factory=list)

    @field_validator("initial_members", mode="before")
    @classmethod
    def _decode_members(cls, value):
        if value is None:
            return []
        return [json.loads(item) if isinstance(item, str) else item for item in value]

    @model_validator(mode="after")
    def _require_class_type(self):
        if not (self.class_type_id or self.class_type):
            raise ValueError("classTypeId is required for creating a class")
        return self

    @property
    def class_type_ref(self) -> str:
        return self.class_type_id or self.class_type or ""


class ClassUpdate(CamelModel):
    class_id: str = Field(min_length=1)
    day: str | None = None
    time: str | None = None
    class_type_id: str | None = None
    total_spots: int | None = Field(default=None, ge=0)


class ClassRef(CamelModel):
    class_id: str = Field(min_length=1)


class JoinRequest(ClassRef):
    user_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None


class LeaveRequest(ClassRef):
    user_id: str = Field(min_length=1)


class ClassCancel(ClassRef):
    reason: str | None = None


class ClassReminder(ClassRef):
    message: str | None = None


class ClassListQuery(CamelModel):
    class_type: str | None = None
    status: str | None = None
    limit: int = Field(default=25, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class MemberOut(CamelModel):
    user_id: str
    name: str
    joined_at: datetime

    @classmethod
    def from_member(cls, member: Member) -> "MemberOut":
        return cls(user_id=member.user_id, name=member.name, joined_at=member.joined_at)


class ClassOut(CamelModel):
    id: str
    class_type_id: str
    class_type_name: str | None = None
    class_type_category: list[str] | None = None
    day: str
    time: str
    members: list[MemberOut]
    total_spots: int
    spots_left: int
    current_members: int
    fill_rate: int
    status: str
    created_at: datetime
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    reactivated_at: datetime | None = None

    @classmethod
    def from_class(
        cls,
        scheduled: ScheduledClass,
        *,
        class_type: ClassType | None = None,
        class_type_name: str | None = None,
    ) -> "ClassOut":
        return cls(
            id=scheduled.id,
            class_type_id=scheduled.class_type_id,
            class_type_name=class_type.name if class_type else class_type_name,
            class_type_category=class_type.category if class_type else None,
            day=scheduled.day,
            time=scheduled.time,
            members=[MemberOut.from_member(member) for member in scheduled.members],
            total_spots=scheduled.total_spots,
            spots_left=scheduled.spots_left,
            current_members=scheduled.member_count,
            fill_rate=round(scheduled.fill_rate),
            status=scheduled.status.value,
            created_at=scheduled.created_at,
            cancelled_at=scheduled.cancelled_at,
            cancel_reason=scheduled.cancel_reason,
            reactivated_at=scheduled.reactivated_at,
        )
