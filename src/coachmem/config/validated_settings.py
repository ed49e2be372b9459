"""
Pydantic validation for settings files.

The pydantic models ignore unknown keys and check ranges, then convert to the
plain dataclass ``MemorySettings`` used everywhere else.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from coachmem.core.errors import ConfigError

from .settings import (
    DatabaseConfig,
    DedupConfig,
    ExtractionConfig,
    LoggingConfig,
    MemorySettings,
    RetrievalConfig,
    SummaryConfig,
)


class ExtractionConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    max_window_chars: int = Field(default=200, gt=0)
    min_window_chars: int = Field(default=8, ge=0)
    min_directive_chars: int = Field(default=5, ge=0)
    short_message_chars: int = Field(default=120, ge=0)
    boost_step: float = Field(default=0.05, ge=0, le=1)
    boost_cap: float = Field(default=0.15, ge=0, le=1)
    short_message_bonus: float = Field(default=0.05, ge=0, le=1)
    confidence_cap: float = Field(default=0.95, ge=0, le=1)
    excerpt_chars: int = Field(default=200, gt=0)


class DedupConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    batch_threshold: float = Field(default=0.6, ge=0, le=1)
    persisted_threshold: float = Field(default=0.5, ge=0, le=1)


class RetrievalConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    default_limit: int = Field(default=10, gt=0)
    pool_multiplier: int = Field(default=5, ge=1)
    char_budget: int = Field(default=1500, gt=0)
    item_overhead_chars: int = Field(default=20, ge=0)
    category_match_boost: float = Field(default=0.25, ge=0)
    category_keyword_boost: float = Field(default=0.2, ge=0)
    recency_max_boost: float = Field(default=0.15, ge=0)
    recency_horizon_days: float = Field(default=90.0, gt=0)
    confidence_weight: float = Field(default=0.3, ge=0)


class SummaryConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min_messages: int = Field(default=6, ge=1)
    retention_cap: int = Field(default=100, ge=1)
    key_item_chars: int = Field(default=160, gt=0)
    max_key_items: int = Field(default=8, ge=0)
    max_tags: int = Field(default=12, ge=0)


class DatabaseConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = ""


class LoggingConfigModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @model_validator(mode="after")
    def _normalize_level(self) -> "LoggingConfigModel":
        self.level = self.level.upper()
        return self


class MemorySettingsModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    extraction: ExtractionConfigModel = Field(default_factory=ExtractionConfigModel)
    dedup: DedupConfigModel = Field(default_factory=DedupConfigModel)
    retrieval: RetrievalConfigModel = Field(default_factory=RetrievalConfigModel)
    summary: SummaryConfigModel = Field(default_factory=SummaryConfigModel)
    database: DatabaseConfigModel = Field(default_factory=DatabaseConfigModel)
    logging: LoggingConfigModel = Field(default_factory=LoggingConfigModel)

    def to_dataclass(self) -> MemorySettings:
        s = MemorySettings()
        s.extraction = ExtractionConfig(**self.extraction.model_dump())
        s.dedup = DedupConfig(**self.dedup.model_dump())
        s.retrieval = RetrievalConfig(**self.retrieval.model_dump())
        s.summary = SummaryConfig(**self.summary.model_dump())
        s.database = DatabaseConfig(**self.database.model_dump())
        s.logging = LoggingConfig(**self.logging.model_dump())
        return s


def validate_settings_dict(data: Dict[str, Any]) -> MemorySettings:
    try:
        model = MemorySettingsModel(**(data or {}))
    except pydantic.ValidationError as exc:
        raise ConfigError(message=f"invalid settings: {exc.error_count()} error(s)", context={"errors": exc.errors()}) from exc
    return model.to_dataclass()


def load_validated_settings(config_path: Optional[str] = None) -> MemorySettings:
    """Validate a YAML settings file with pydantic and return ``MemorySettings``."""
    data: Dict[str, Any] = {}
    if config_path:
        cfg_file = Path(config_path)
        if cfg_file.exists():
            try:
                data = yaml.safe_load(cfg_file.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(message=f"unreadable settings file: {cfg_file}") from exc
            if not isinstance(data, dict):
                raise ConfigError(message=f"settings root must be a mapping: {cfg_file}")
    settings = validate_settings_dict(data)
    settings.load_environment_variables()
    return settings
