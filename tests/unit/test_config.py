from __future__ import annotations

import logging

import pytest

from coachmem.config import (
    MemorySettings,
    configure_logging,
    create_settings,
    load_validated_settings,
    validate_settings_dict,
)
from coachmem.core.errors import ConfigError


def test_defaults():
    s = MemorySettings()
    assert s.dedup.batch_threshold == 0.6
    assert s.dedup.persisted_threshold == 0.5
    assert s.retrieval.char_budget == 1500
    assert s.retrieval.recency_horizon_days == 90.0
    assert s.extraction.confidence_cap == 0.95
    assert s.summary.retention_cap == 100


def test_create_settings_reads_yaml_and_env(tmp_path, monkeypatch):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("retrieval:\n  char_budget: 900\nlogging:\n  level: debug\n", encoding="utf-8")
    monkeypatch.setenv("COACHMEM_DB_URL", "sqlite:///custom.db")
    monkeypatch.delenv("COACHMEM_LOG_LEVEL", raising=False)

    s = create_settings(str(cfg))
    assert s.retrieval.char_budget == 900
    assert s.retrieval.default_limit == 10
    assert s.database.url == "sqlite:///custom.db"


def test_missing_file_means_defaults(tmp_path):
    assert MemorySettings.load_from_file(str(tmp_path / "nope.yaml")).dedup.batch_threshold == 0.6


def test_validated_settings_ignores_unknown_keys_and_normalizes_level(tmp_path, monkeypatch):
    monkeypatch.delenv("COACHMEM_LOG_LEVEL", raising=False)
    monkeypatch.delenv("COACHMEM_DB_URL", raising=False)
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("dedup:\n  batch_threshold: 0.7\n  surprise: 1\nlogging:\n  level: debug\nextra_section: {}\n")

    s = load_validated_settings(str(cfg))
    assert s.dedup.batch_threshold == 0.7
    assert s.logging.level == "DEBUG"


def test_validated_settings_env_override(monkeypatch):
    monkeypatch.setenv("COACHMEM_LOG_LEVEL", "warning")
    assert load_validated_settings().logging.level == "WARNING"


@pytest.mark.parametrize(
    "data",
    [
        {"dedup": {"batch_threshold": 1.5}},
        {"retrieval": {"char_budget": 0}},
        {"summary": {"min_messages": 0}},
    ],
)
def test_invalid_values_raise_config_error(data):
    with pytest.raises(ConfigError) as exc:
        validate_settings_dict(data)
    assert exc.value.code == "CONFIG_ERROR"


def test_bad_yaml_raises_config_error(tmp_path):
    cfg = tmp_path / "broken.yaml"
    cfg.write_text("dedup: [unclosed\n")
    with pytest.raises(ConfigError):
        load_validated_settings(str(cfg))

    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_validated_settings(str(cfg))


def test_to_dict_roundtrip():
    s = MemorySettings()
    s.retrieval.char_budget = 700
    again = MemorySettings.from_dict(s.to_dict())
    assert again.retrieval.char_budget == 700


def test_configure_logging_is_idempotent():
    logger = configure_logging()
    handlers = list(logger.handlers)
    assert configure_logging() is logger
    assert logger.handlers == handlers
    assert logger.name == "coachmem"
    assert logger.level == logging.INFO
