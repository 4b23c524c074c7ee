from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_engine.core.config import AppConfig, get_settings
from booking_engine.models import SystemSetting

MAX_APPOINTMENTS_PER_DAY = "MAX_APPOINTMENTS_PER_DAY"


def branch_capacity_key(branch_id: int) -> str:
    return f"{MAX_APPOINTMENTS_PER_DAY}.BRANCH.{branch_id}"


class SystemSettingService:
    def __init__(self, session: Session, settings: AppConfig | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    def get_value(self, key: str) -> str | None:
        stmt = select(SystemSetting.value).where(SystemSetting.key == key)
        return self.session.scalars(stmt).first()

    def set_value(self, key: str, value: str, *, description: str | None = None) -> SystemSetting:
        setting = self.session.scalars(select(SystemSetting).where(SystemSetting.key == key)).first()
        if setting:
            setting.value = value
            setting.updated_at = datetime.now(timezone.utc)
            if description is not None:
                setting.description = description
        else:
            setting = SystemSetting(key=key, value=value, description=description)
            self.session.add(setting)
        self.session.flush()
        logger.info("System setting {key} set to {value}", key=key, value=value)
        return setting

    def max_appointments_per_day(self, branch_id: int) -> int:
        """Capacity ceiling for one branch and day: branch override, then global, then config."""
        for key in (branch_capacity_key(branch_id), MAX_APPOINTMENTS_PER_DAY):
            raw = self.get_value(key)
            if raw is None:
                continue
            try:
                value = int(raw.strip())
            except ValueError:
                logger.warning("Ignoring non-integer setting {key}={raw}", key=key, raw=raw)
                continue
            if value <= 0:
                logger.warning("Ignoring non-positive setting {key}={raw}", key=key, raw=raw)
                continue
            return value
        return self.settings.max_appointments_per_day


def get_system_setting_service(session: Session) -> SystemSettingService:
    return SystemSettingService(session=session)
