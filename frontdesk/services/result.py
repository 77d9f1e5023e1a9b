from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    ROOM_NOT_FOUND = "room_not_found"
    UNAVAILABLE = "unavailable"
    INVALID_DATES = "invalid_dates"
    INVALID_STATE = "invalid_state"
    STORE_ERROR = "store_error"
    UNKNOWN = "unknown"


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: ErrorCode | str = ErrorCode.UNKNOWN) -> "Result[T]":
        return Result(ok=False, error=error, error_code=ErrorCode(code).value)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
