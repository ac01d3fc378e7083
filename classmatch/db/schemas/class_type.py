from datetime import datetime

from pydantic import Field, field_validator

from .base import CamelModel


def _split_tags(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return [str(tag).strip() for tag in value if str(tag).strip()]


class ClassTypeBase(CamelModel):
    name: str = Field(min_length=1)
    category: list[str] = Field(default_factory=list)
    description: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        return _split_tags(value)


class ClassTypeCreate(ClassTypeBase):
    pass


class ClassTypeUpdate(CamelModel):
    class_type_id: str
    name: str | None = Field(default=None, min_length=1)
    category: list[str] | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        return None if value is None else _split_tags(value)


class ClassType(ClassTypeBase):
    id: str
    is_active: bool = True
    created_at: datetime | None = None
    usage_count: int | None = None


class ClassTypeRef(CamelModel):
    class_type_id: str = Field(min_length=1)
