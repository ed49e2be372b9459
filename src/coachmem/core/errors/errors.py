"""
Error types and a Result wrapper shared by the memory core.

Extraction and scoring never raise on text input; these errors cover store
failures, invalid arguments and bad configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar


class ErrorSeverity(Enum):
    WARNING = "warning"      # caller may continue
    ERROR = "error"          # operation failed
    CRITICAL = "critical"    # component unusable


@dataclass
class CoachMemError(Exception):
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    code: str = "UNKNOWN"
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


@dataclass
class StoreError(CoachMemError):
    code: str = "STORE_ERROR"


@dataclass
class ValidationError(CoachMemError):
    code: str = "VALIDATION_ERROR"
    severity: ErrorSeverity = ErrorSeverity.WARNING


@dataclass
class ConfigError(CoachMemError):
    code: str = "CONFIG_ERROR"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a store-backed operation: a value, or the CoachMemError that
    stopped it. Used by ``CoachingMemory.try_store_insights``.
    """

    value: Optional[T] = None
    error: Optional[CoachMemError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def err(cls, error: CoachMemError) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or re-raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return default if self.error is not None else self.value  # type: ignore[return-value]
