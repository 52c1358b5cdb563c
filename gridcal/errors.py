"""Domain error codes for the Gridcal backend."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    TITLE_REQUIRED = "TITLE_REQUIRED"
    INVALID_TIME = "INVALID_TIME"
    EVENT_CONFLICT = "EVENT_CONFLICT"
    STORAGE_UNREADABLE = "STORAGE_UNREADABLE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when a submitted event draft is not acceptable."""

    def __init__(self, code: ErrorCode, message: str, field: str = "") -> None:
        super().__init__(code=code, message=message)
        self.field = field


class ConflictDetected(DomainError):
    """Raised when a candidate event overlaps existing events on the same day."""

    def __init__(self, conflicts: list) -> None:
        titles = ", ".join(event.title for event in conflicts)
        super().__init__(
            code=ErrorCode.EVENT_CONFLICT,
            message=f"This event conflicts with: {titles}",
        )
        self.conflicts = list(conflicts)


class PersistenceReadError(DomainError):
    """Raised when stored event data cannot be decoded."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_UNREADABLE,
            message="Stored events could not be read",
        )
        self.detail = detail
