from functools import lru_cache
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class Settings(BaseModel):
    timezone: str = Field(default="Asia/Hong_Kong", alias="TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    store_backend: str = Field(default="sql", alias="STORE_BACKEND")
    database_url: str = Field(
        default="sqlite+pysqlite:///./classmatch.db", alias="DATABASE_URL"
    )
    classes_collection: str = Field(default="classes", alias="CLASSES_COLLECTION_ID")
    class_types_collection: str = Field(
        default="class_types", alias="CLASS_TYPES_COLLECTION_ID"
    )
    availability_collection: str = Field(
        default="availability", alias="AVAILABILITY_COLLECTION_ID"
    )
    users_collection: str = Field(default="users", alias="USERS_COLLECTION_ID")

    default_total_spots: int = Field(default=5, alias="DEFAULT_TOTAL_SPOTS")
    class_write_attempts: int = Field(default=5, alias="CLASS_WRITE_ATTEMPTS")

    mailgun_api_key: str = Field(default="", alias="MAILGUN_API_KEY")
    mailgun_domain: str = Field(default="", alias="MAILGUN_DOMAIN")
    mailgun_base_url: str = Field(
        default="https://api.mailgun.net/v3", alias="MAILGUN_BASE_URL"
    )
    mail_from: str = Field(default="Class Scheduler <postmaster@localhost>", alias="MAIL_FROM")
    operator_email: str = Field(default="", alias="OPERATOR_EMAIL")
    app_url: str = Field(default="http://localhost:3000", alias="APP_URL")

    scheduler_enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")
    match_sweep_minutes: int = Field(default=30, alias="MATCH_SWEEP_MINUTES")
    reminder_hour: int = Field(default=9, alias="REMINDER_HOUR")

    class Config:
        populate_by_name = True

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mailgun_api_key and self.mailgun_domain)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings(**os.environ)
