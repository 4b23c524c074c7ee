from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    INVALID_RANGE = "INVALID_RANGE"

    NOT_FOUND = "NOT_FOUND"
    BRANCH_NOT_FOUND = "BRANCH_NOT_FOUND"
    APPOINTMENT_TYPE_NOT_FOUND = "APPOINTMENT_TYPE_NOT_FOUND"
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"

    DUPLICATE_SLOT = "DUPLICATE_SLOT"
    ALREADY_INACTIVE = "ALREADY_INACTIVE"
    ALREADY_ACTIVE = "ALREADY_ACTIVE"
    DATE_IN_PAST = "DATE_IN_PAST"
    DUPLICATE_HOLIDAY = "DUPLICATE_HOLIDAY"

    SUNDAY_NOT_AVAILABLE = "SUNDAY_NOT_AVAILABLE"
    HOLIDAY_NOT_AVAILABLE = "HOLIDAY_NOT_AVAILABLE"
    PAST_DATE_NOT_AVAILABLE = "PAST_DATE_NOT_AVAILABLE"
    DAILY_CAPACITY_EXCEEDED = "DAILY_CAPACITY_EXCEEDED"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"

    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    CANNOT_COMPLETE_CANCELLED = "CANNOT_COMPLETE_CANCELLED"
    CANNOT_CANCEL_COMPLETED = "CANNOT_CANCEL_COMPLETED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ALREADY_DELETED = "ALREADY_DELETED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class EngineError(Exception):
    """Expected failure of a core operation, reported to callers as a failed Result."""

    default_code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class InvalidInputError(EngineError):
    default_code = ErrorCode.INVALID_INPUT


class NotFoundError(EngineError):
    default_code = ErrorCode.NOT_FOUND


class BusinessRuleError(EngineError):
    default_code = ErrorCode.INVALID_TRANSITION


class InternalError(EngineError):
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str = "Internal error, please try again later") -> None:
        super().__init__(message, code=ErrorCode.INTERNAL_ERROR)
