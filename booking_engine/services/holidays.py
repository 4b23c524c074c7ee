from __future__ import annotations

from datetime import date

from loguru import logger
from sqlalchemy import extract, select
from sqlalchemy.orm import Session

from booking_engine.core.errors import BusinessRuleError, ErrorCode, InvalidInputError, NotFoundError
from booking_engine.core.result import returns_result
from booking_engine.models import Holiday, HolidayType
from booking_engine.services.directory import DirectoryService
from booking_engine.utils.time import Clock, today, utcnow


class HolidayCalendar:
    """Non-working dates. NATIONAL and COMPANY holidays close every branch, LOCAL ones a single branch."""

    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        self.session = session
        self.clock = clock
        self.directory = DirectoryService(session=session)

    @returns_result
    def create_national_holiday(self, *, holiday_date: date, name: str) -> Holiday:
        return self._create(holiday_date=holiday_date, name=name, holiday_type=HolidayType.NATIONAL)

    @returns_result
    def create_company_holiday(self, *, holiday_date: date, name: str) -> Holiday:
        return self._create(holiday_date=holiday_date, name=name, holiday_type=HolidayType.COMPANY)

    @returns_result
    def create_local_holiday(self, *, holiday_date: date, name: str, branch_id: int) -> Holiday:
        return self._create(holiday_date=holiday_date, name=name, holiday_type=HolidayType.LOCAL, branch_id=branch_id)

    @returns_result
    def update_holiday(self, holiday_id: int, *, name: str | None = None, holiday_date: date | None = None) -> Holiday:
        holiday = self._require_holiday(holiday_id)
        if holiday_date is not None and holiday_date != holiday.holiday_date:
            self._ensure_not_past(holiday_date)
            self._ensure_unique(
                holiday_date,
                HolidayType(holiday.holiday_type),
                holiday.branch_id,
                exclude_id=holiday.id,
            )
            holiday.holiday_date = holiday_date
        if name is not None:
            if not name.strip():
                raise InvalidInputError("Holiday name cannot be empty")
            holiday.name = name.strip()
        holiday.updated_at = self.clock()
        self.session.flush()
        logger.info("Updated holiday id={holiday_id}", holiday_id=holiday_id)
        return holiday

    @returns_result
    def deactivate_holiday(self, holiday_id: int) -> Holiday:
        holiday = self._require_holiday(holiday_id)
        if not holiday.is_active:
            raise BusinessRuleError("Holiday is already inactive", code=ErrorCode.ALREADY_INACTIVE)
        holiday.is_active = False
        holiday.updated_at = self.clock()
        self.session.flush()
        return holiday

    def is_holiday(self, day: date, branch_id: int | None) -> bool:
        return self.get_holiday_on(day, branch_id) is not None

    def get_holiday_on(self, day: date, branch_id: int | None) -> Holiday | None:
        """First active holiday on ``day`` that closes ``branch_id``."""
        for holiday in self._active_on(day):
            if holiday.applies_to_branch(branch_id):
                return holiday
        return None

    @returns_result
    def get_holidays_in_range(self, start: date, end: date, branch_id: int | None = None) -> list[Holiday]:
        if start > end:
            raise InvalidInputError("Start date must be on or before end date", code=ErrorCode.INVALID_RANGE)
        stmt = (
            select(Holiday)
            .where(Holiday.is_active.is_(True), Holiday.holiday_date >= start, Holiday.holiday_date <= end)
            .order_by(Holiday.holiday_date, Holiday.id)
        )
        return self._filter_branch(self.session.scalars(stmt), branch_id)

    def get_holidays_by_year(self, year: int, branch_id: int | None = None) -> list[Holiday]:
        stmt = (
            select(Holiday)
            .where(Holiday.is_active.is_(True), extract("year", Holiday.holiday_date) == year)
            .order_by(Holiday.holiday_date, Holiday.id)
        )
        return self._filter_branch(self.session.scalars(stmt), branch_id)

    def _create(
        self,
        *,
        holiday_date: date,
        name: str,
        holiday_type: HolidayType,
        branch_id: int | None = None,
    ) -> Holiday:
        if not name or not name.strip():
            raise InvalidInputError("Holiday name cannot be empty")
        self._ensure_not_past(holiday_date)
        if holiday_type is HolidayType.LOCAL:
            if branch_id is None:
                raise InvalidInputError("A local holiday requires a branch")
            self.directory.require_branch(branch_id)
        self._ensure_unique(holiday_date, holiday_type, branch_id)

        holiday = Holiday(
            holiday_date=holiday_date,
            name=name.strip(),
            holiday_type=holiday_type.value,
            branch_id=branch_id if holiday_type is HolidayType.LOCAL else None,
            is_active=True,
            created_at=self.clock(),
        )
        self.session.add(holiday)
        self.session.flush()
        logger.info(
            "Created {holiday_type} holiday '{name}' on {day}",
            holiday_type=holiday_type.value,
            name=holiday.name,
            day=holiday_date.isoformat(),
        )
        return holiday

    def _ensure_not_past(self, holiday_date: date) -> None:
        if holiday_date < today(self.clock):
            raise BusinessRuleError("Cannot create a holiday in the past", code=ErrorCode.DATE_IN_PAST)

    def _ensure_unique(
        self,
        holiday_date: date,
        holiday_type: HolidayType,
        branch_id: int | None,
        *,
        exclude_id: int | None = None,
    ) -> None:
        for existing in self._active_on(holiday_date):
            if existing.id == exclude_id or existing.holiday_type != holiday_type.value:
                continue
            if holiday_type is not HolidayType.LOCAL or existing.branch_id == branch_id:
                raise BusinessRuleError(
                    f"A {holiday_type.value.lower()} holiday already exists on {holiday_date.isoformat()}",
                    code=ErrorCode.DUPLICATE_HOLIDAY,
                )

    def _active_on(self, day: date) -> list[Holiday]:
        stmt = (
            select(Holiday)
            .where(Holiday.holiday_date == day, Holiday.is_active.is_(True))
            .order_by(Holiday.id)
        )
        return list(self.session.scalars(stmt))

    def _require_holiday(self, holiday_id: int) -> Holiday:
        holiday = self.session.get(Holiday, holiday_id)
        if not holiday:
            raise NotFoundError(f"Holiday with ID {holiday_id} not found")
        return holiday

    @staticmethod
    def _filter_branch(holidays, branch_id: int | None) -> list[Holiday]:  # noqa: ANN001
        if branch_id is None:
            return list(holidays)
        return [holiday for holiday in holidays if holiday.applies_to_branch(branch_id)]


def get_holiday_calendar(session: Session, *, clock: Clock = utcnow) -> HolidayCalendar:
    return HolidayCalendar(session=session, clock=clock)
