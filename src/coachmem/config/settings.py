# coachmem/config/settings.py

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class ExtractionConfig:
    """Keyword-rule and directive extraction knobs"""
    max_window_chars: int = 200
    min_window_chars: int = 8
    min_directive_chars: int = 5
    short_message_chars: int = 120
    boost_step: float = 0.05
    boost_cap: float = 0.15
    short_message_bonus: float = 0.05
    confidence_cap: float = 0.95
    excerpt_chars: int = 200


@dataclass
class DedupConfig:
    """Similarity thresholds; batch is stricter than persisted on purpose"""
    batch_threshold: float = 0.6
    persisted_threshold: float = 0.5


@dataclass
class RetrievalConfig:
    """Relevance scoring and output budget"""
    default_limit: int = 10
    pool_multiplier: int = 5
    char_budget: int = 1500
    item_overhead_chars: int = 20
    category_match_boost: float = 0.25
    category_keyword_boost: float = 0.2
    recency_max_boost: float = 0.15
    recency_horizon_days: float = 90.0
    confidence_weight: float = 0.3


@dataclass
class SummaryConfig:
    """Conversation summary retention"""
    min_messages: int = 6
    retention_cap: int = 100
    key_item_chars: int = 160
    max_key_items: int = 8
    max_tags: int = 12


@dataclass
class DatabaseConfig:
    """Database configuration"""
    url: str = ""


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class MemorySettings:
    """Top-level settings for the memory engine"""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load_from_file(cls, config_path: Optional[str] = None) -> "MemorySettings":
        """Load settings from a YAML file; missing file means defaults."""
        if config_path is None:
            return cls()

        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "MemorySettings":
        settings = cls()

        if "extraction" in config_data:
            settings.extraction = ExtractionConfig(**config_data["extraction"])

        if "dedup" in config_data:
            settings.dedup = DedupConfig(**config_data["dedup"])

        if "retrieval" in config_data:
            settings.retrieval = RetrievalConfig(**config_data["retrieval"])

        if "summary" in config_data:
            settings.summary = SummaryConfig(**config_data["summary"])

        if "database" in config_data:
            settings.database = DatabaseConfig(**config_data["database"])

        if "logging" in config_data:
            settings.logging = LoggingConfig(**config_data["logging"])

        return settings

    def load_environment_variables(self) -> "MemorySettings":
        env_db = os.getenv("COACHMEM_DB_URL")
        if env_db:
            self.database.url = env_db
        env_level = os.getenv("COACHMEM_LOG_LEVEL")
        if env_level:
            self.logging.level = env_level.upper()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extraction": self.extraction.__dict__,
            "dedup": self.dedup.__dict__,
            "retrieval": self.retrieval.__dict__,
            "summary": self.summary.__dict__,
            "database": self.database.__dict__,
            "logging": self.logging.__dict__,
        }


def create_settings(config_path: Optional[str] = None) -> MemorySettings:
    """Create settings from an optional YAML file plus environment overrides."""
    settings = MemorySettings.load_from_file(config_path)
    settings.load_environment_variables()
    return settings
