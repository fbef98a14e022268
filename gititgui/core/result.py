from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Dict, Any


T = TypeVar("T")


class ErrorCode:
    """Error codes surfaced by the repository manager."""

    CONFIGURATION = "CONFIGURATION"
    NO_REPO = "NO_REPO"
    OPEN_FAILED = "OPEN_FAILED"
    CLONE_FAILED = "CLONE_FAILED"
    SIGNATURE_FAILED = "SIGNATURE_FAILED"
    LFS_ALREADY_ENABLED = "LFS_ALREADY_ENABLED"
    LFS_NOT_ENABLED = "LFS_NOT_ENABLED"
    # Repo may be left with half-installed hooks; the app should stop.
    LFS_FATAL = "LFS_FATAL"


FATAL_CODES = frozenset({ErrorCode.LFS_FATAL})


@dataclass(frozen=True)
class AppError:
    """Structured error information safe for UI and logs.

    `details` should carry the git stderr (already redacted by the caller).
    `meta` can hold non-sensitive context (repo path, pattern, exit code).
    """

    code: str
    message: str
    details: str = ""
    meta: Optional[Dict[str, Any]] = None

    @property
    def fatal(self) -> bool:
        return self.code in FATAL_CODES


@dataclass(frozen=True)
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[AppError] = None

    @staticmethod
    def success(value: T = None) -> "Result[T]":
        return Result(ok=True, value=value, error=None)

    @staticmethod
    def failure(
        code: str,
        message: str,
        details: str = "",
        meta: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        return Result(
            ok=False,
            value=None,
            error=AppError(code=code, message=message, details=details, meta=meta),
        )

    @property
    def fatal(self) -> bool:
        return self.error is not None and self.error.fatal

    def __bool__(self) -> bool:
        return self.ok

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default
