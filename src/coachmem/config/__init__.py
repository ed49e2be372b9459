# coachmem/config/__init__.py

from .settings import (
    MemorySettings,
    ExtractionConfig,
    DedupConfig,
    RetrievalConfig,
    SummaryConfig,
    DatabaseConfig,
    LoggingConfig,
    create_settings,
)
from .validated_settings import load_validated_settings, validate_settings_dict
from .logging_setup import configure_logging

__all__ = [
    "MemorySettings",
    "ExtractionConfig",
    "DedupConfig",
    "RetrievalConfig",
    "SummaryConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "create_settings",
    "load_validated_settings",
    "validate_settings_dict",
    "configure_logging",
]
