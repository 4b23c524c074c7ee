from __future__ import annotations

from datetime import date

import pytest

from booking_engine.core.errors import ErrorCode
from booking_engine.services.holidays import HolidayCalendar

from .conftest import MONDAY, YESTERDAY, fixed_clock


@pytest.fixture
def calendar(session) -> HolidayCalendar:
    return HolidayCalendar(session=session, clock=fixed_clock)


def test_national_holiday_closes_every_branch(calendar, seed) -> None:
    result = calendar.create_national_holiday(holiday_date=MONDAY, name="  Dia de San Jose ")

    assert result.ok
    assert result.value.name == "Dia de San Jose"
    assert calendar.is_holiday(MONDAY, seed.branch.id)
    assert calendar.is_holiday(MONDAY, seed.other_branch.id)


def test_company_holiday_closes_every_branch(calendar, seed) -> None:
    calendar.create_company_holiday(holiday_date=MONDAY, name="Inventario")

    assert calendar.get_holiday_on(MONDAY, seed.other_branch.id).name == "Inventario"


def test_local_holiday_only_closes_its_branch(calendar, seed) -> None:
    result = calendar.create_local_holiday(holiday_date=MONDAY, name="Feria local", branch_id=seed.other_branch.id)

    assert result.ok
    assert calendar.is_holiday(MONDAY, seed.other_branch.id)
    assert not calendar.is_holiday(MONDAY, seed.branch.id)


def test_local_holiday_requires_known_branch(calendar, seed) -> None:
    result = calendar.create_local_holiday(holiday_date=MONDAY, name="Feria", branch_id=999)

    assert result.error is ErrorCode.BRANCH_NOT_FOUND


def test_holiday_in_the_past_is_rejected(calendar, seed) -> None:
    result = calendar.create_national_holiday(holiday_date=YESTERDAY, name="Tarde")

    assert result.error is ErrorCode.DATE_IN_PAST
    assert result.kind == "business_rule"


def test_blank_name_is_rejected(calendar, seed) -> None:
    assert calendar.create_national_holiday(holiday_date=MONDAY, name="   ").error is ErrorCode.INVALID_INPUT


def test_duplicate_is_checked_per_type(calendar, seed) -> None:
    calendar.create_national_holiday(holiday_date=MONDAY, name="Festivo")

    assert calendar.create_national_holiday(holiday_date=MONDAY, name="Otro").error is ErrorCode.DUPLICATE_HOLIDAY
    assert calendar.create_company_holiday(holiday_date=MONDAY, name="Cierre").ok


def test_local_duplicates_are_checked_per_branch(calendar, seed) -> None:
    calendar.create_local_holiday(holiday_date=MONDAY, name="Feria", branch_id=seed.branch.id)

    again = calendar.create_local_holiday(holiday_date=MONDAY, name="Feria", branch_id=seed.branch.id)
    elsewhere = calendar.create_local_holiday(holiday_date=MONDAY, name="Feria", branch_id=seed.other_branch.id)

    assert again.error is ErrorCode.DUPLICATE_HOLIDAY
    assert elsewhere.ok


def test_deactivated_holiday_no_longer_blocks(calendar, seed) -> None:
    holiday = calendar.create_national_holiday(holiday_date=MONDAY, name="Festivo").value

    assert calendar.deactivate_holiday(holiday.id).ok
    assert not calendar.is_holiday(MONDAY, seed.branch.id)
    assert calendar.deactivate_holiday(holiday.id).error is ErrorCode.ALREADY_INACTIVE


def test_update_holiday_moves_date_and_checks_duplicates(calendar, seed) -> None:
    first = calendar.create_national_holiday(holiday_date=MONDAY, name="Festivo").value
    second = calendar.create_national_holiday(holiday_date=date(2025, 3, 24), name="Otro festivo").value

    clash = calendar.update_holiday(second.id, holiday_date=MONDAY)
    assert clash.error is ErrorCode.DUPLICATE_HOLIDAY

    moved = calendar.update_holiday(first.id, holiday_date=date(2025, 3, 11), name="Festivo movido")
    assert moved.ok
    assert moved.value.holiday_date == date(2025, 3, 11)
    assert moved.value.name == "Festivo movido"


def test_update_unknown_holiday(calendar, seed) -> None:
    assert calendar.update_holiday(404, name="x").error is ErrorCode.NOT_FOUND


def test_holidays_in_range_filters_by_branch(calendar, seed) -> None:
    calendar.create_national_holiday(holiday_date=MONDAY, name="Festivo")
    calendar.create_local_holiday(holiday_date=date(2025, 3, 11), name="Feria", branch_id=seed.other_branch.id)
    calendar.create_company_holiday(holiday_date=date(2025, 4, 1), name="Fuera de rango")

    everything = calendar.get_holidays_in_range(date(2025, 3, 1), date(2025, 3, 31))
    north_only = calendar.get_holidays_in_range(date(2025, 3, 1), date(2025, 3, 31), seed.branch.id)

    assert [h.name for h in everything.value] == ["Festivo", "Feria"]
    assert [h.name for h in north_only.value] == ["Festivo"]


def test_holidays_in_range_rejects_inverted_range(calendar, seed) -> None:
    result = calendar.get_holidays_in_range(date(2025, 3, 31), date(2025, 3, 1))

    assert result.error is ErrorCode.INVALID_RANGE


def test_holidays_by_year(calendar, seed) -> None:
    calendar.create_national_holiday(holiday_date=MONDAY, name="Festivo")
    calendar.create_national_holiday(holiday_date=date(2026, 1, 1), name="Ano nuevo")

    assert [h.name for h in calendar.get_holidays_by_year(2025)] == ["Festivo"]
