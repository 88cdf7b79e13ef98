from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown", kind: ErrorKind = ErrorKind.INTERNAL) -> "Result[T]":
        return Result(ok=False, error=error, error_code=code, error_kind=kind)

    @staticmethod
    def upstream_failure(error: str, code: str) -> "Result[T]":
        return Result.failure(error, code, kind=ErrorKind.UPSTREAM)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default

    def log_context(self) -> dict:
        """Structured fields describing a failure, for the `context` log extra."""
        return {
            "error": self.error,
            "error_code": self.error_code,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }
