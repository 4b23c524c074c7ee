from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

from booking_engine.core.errors import (
    BusinessRuleError,
    EngineError,
    ErrorCode,
    InternalError,
    InvalidInputError,
    NotFoundError,
)

T = TypeVar("T")

_KINDS: tuple[tuple[type[EngineError], str], ...] = (
    (InvalidInputError, "validation"),
    (NotFoundError, "not_found"),
    (BusinessRuleError, "business_rule"),
    (InternalError, "internal"),
)


@dataclass
class Result(Generic[T]):
    ok: bool
    value: T | None = None
    error: ErrorCode | None = None
    message: str | None = None
    kind: str | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: T | None = None, *, warnings: list[str] | None = None) -> "Result[T]":
        return cls(ok=True, value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, exc: EngineError) -> "Result[T]":
        kind = next((name for klass, name in _KINDS if isinstance(exc, klass)), "validation")
        return cls(ok=False, error=exc.code, message=exc.message, kind=kind)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


def returns_result(func: Callable[..., Any]) -> Callable[..., Result[Any]]:
    """Wrap a core operation so expected failures come back as a failed Result.

    The wrapped function may return a plain value or a ready-made Result.
    Anything that is not an EngineError (connectivity loss and the like) propagates.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Result[Any]:
        try:
            value = func(*args, **kwargs)
        except EngineError as exc:
            logger.info(
                "{operation} rejected: {code} - {message}",
                operation=func.__qualname__,
                code=exc.code.value,
                message=exc.message,
            )
            return Result.failure(exc)
        if isinstance(value, Result):
            return value
        return Result.success(value)

    return wrapper
