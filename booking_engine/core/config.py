from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BOOKABLE_INITIAL_STATUSES = ("PENDING", "CONFIRMED")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", alias="LOG_LEVEL")


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    env: str = Field(default="development", alias="APP_ENV")
    host: str = Field(default="0.0.0.0", alias="APP_HOST")
    port: int = Field(default=8000, alias="APP_PORT")

    database_url: str = Field(default="sqlite:///./data/appointments.db", alias="DATABASE_URL")

    max_appointments_per_day: int = Field(default=50, alias="MAX_APPOINTMENTS_PER_DAY", gt=0)
    default_booking_status: str = Field(default="CONFIRMED", alias="DEFAULT_BOOKING_STATUS")
    appointment_number_prefix: str = Field(default="APT", alias="APPOINTMENT_NUMBER_PREFIX")
    require_configured_slot: bool = Field(default=False, alias="REQUIRE_CONFIGURED_SLOT")

    notification_webhook_url: str | None = Field(default=None, alias="NOTIFICATION_WEBHOOK_URL")
    notification_timeout_sec: float = Field(default=10.0, alias="NOTIFICATION_TIMEOUT_SEC")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("default_booking_status")
    @classmethod
    def _bookable_status(cls, value: str) -> str:
        status = value.strip().upper()
        if status not in BOOKABLE_INITIAL_STATUSES:
            raise ValueError(f"DEFAULT_BOOKING_STATUS must be PENDING or CONFIRMED, got {value!r}")
        return status


@lru_cache
def get_settings() -> AppConfig:
    return AppConfig()
