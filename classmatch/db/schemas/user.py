from datetime import datetime

from pydantic import EmailStr, Field

from .base import CamelModel


class UserRegister(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=1)
    phone: str | None = None


class UserProfile(CamelModel):
    id: str
    name: str
    email: str
    phone: str | None = None


class MemberDetails(CamelModel):
    user_id: str
    name: str
    email: str
    phone: str
    joined_at: datetime
    error: str | None = None


class UserRef(CamelModel):
    user_id: str = Field(min_length=1)
