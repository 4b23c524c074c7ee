from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Callable, Iterable

from booking_engine.core.errors import ErrorCode, InvalidInputError

Clock = Callable[[], datetime]

_SLOT_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today(clock: Clock = utcnow) -> date:
    """Server date in UTC, the reference for every past-date rule."""
    now = clock()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def parse_slot_time(value: str | None) -> time:
    match = _SLOT_TIME_RE.match((value or "").strip())
    if not match:
        raise InvalidInputError(
            f"Invalid time format '{value}', expected HH:mm (00-23:00-59)",
            code=ErrorCode.INVALID_TIME_FORMAT,
        )
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def normalize_slot_time(value: str | None) -> str:
    return format_slot_time(parse_slot_time(value))


def format_slot_time(value: time) -> str:
    return value.strftime("%H:%M")


def sort_slot_times(values: Iterable[str]) -> list[str]:
    # "9:00" must sort before "10:00", so order by parsed time of day
    return sorted(set(values), key=parse_slot_time)


def is_sunday(day: date) -> bool:
    return day.weekday() == 6
