"""Explicit success/failure results returned by the clearance service."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .states import StepStatus

T = TypeVar("T")


class ClearanceErrorKind(str, Enum):
    """Business-rule failures. None of these are transient."""

    ALREADY_EXISTS = "AlreadyExists"
    NOT_FOUND = "NotFound"
    ALREADY_ACTIONED = "AlreadyActioned"
    FORBIDDEN = "Forbidden"
    INVALID_REQUEST = "InvalidRequest"  # e.g. a student with no home department


@dataclass(frozen=True)
class ClearanceError:
    kind: ClearanceErrorKind
    message: str
    current_status: Optional[StepStatus] = None  # set for ALREADY_ACTIONED


@dataclass(frozen=True)
class ClearanceResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ClearanceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "ClearanceResult":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ClearanceErrorKind,
        message: str,
        current_status: Optional[StepStatus] = None,
    ) -> "ClearanceResult":
        return cls(error=ClearanceError(kind, message, current_status))
