"""
Unified error module.
"""

from .errors import (
    ErrorSeverity,
    CoachMemError,
    StoreError,
    ValidationError,
    ConfigError,
    Result,
)

__all__ = [
    "ErrorSeverity",
    "CoachMemError",
    "StoreError",
    "ValidationError",
    "ConfigError",
    "Result",
]
