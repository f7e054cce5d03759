"""
Unit tests for environment-driven configuration.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import pytest

from signalreach.config import (
    LOCAL_DEV_ORIGINS,
    Settings,
    collect_errors,
    collect_warnings,
    print_config,
    validate,
)
from signalreach.errors import ConfigError

ENV_KEYS = [
    "LLM_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY", "PORT", "FRONTEND_URL",
    "SCRAPE_DEDUPE", "SCRAPE_MAX_WORKERS", "LOG_LEVEL", "LOG_FORMAT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_llm_key_fallback_order(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gem")
    assert Settings.from_env(dotenv=False).llm_api_key == "gem"
    monkeypatch.setenv("OPENAI_API_KEY", "oai")
    assert Settings.from_env(dotenv=False).llm_api_key == "oai"
    monkeypatch.setenv("LLM_API_KEY", "primary")
    assert Settings.from_env(dotenv=False).llm_api_key == "primary"


def test_env_values_parsed(monkeypatch):
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("FRONTEND_URL", "https://app.example.com/")
    monkeypatch.setenv("SCRAPE_DEDUPE", "false")
    monkeypatch.setenv("SCRAPE_MAX_WORKERS", "not-a-number")
    settings = Settings.from_env(dotenv=False)
    assert settings.port == 9090
    assert settings.frontend_url == "https://app.example.com"
    assert settings.scrape_dedupe is False
    assert settings.scrape_max_workers == 4


def test_allowed_origins():
    assert Settings(frontend_url="https://a.io").allowed_origins == ["https://a.io", *LOCAL_DEV_ORIGINS]
    assert Settings().allowed_origins == list(LOCAL_DEV_ORIGINS)


def test_missing_llm_key_is_fatal():
    assert any("LLM_API_KEY" in e for e in collect_errors(Settings()))
    with pytest.raises(ConfigError):
        validate(Settings(), strict=True)
    assert validate(Settings(llm_api_key="k"), strict=True) == []


def test_invalid_log_level_is_a_warning():
    settings = Settings(llm_api_key="k", log_level="LOUD")
    assert collect_errors(settings) == []
    assert len(collect_warnings(settings)) == 1
    assert len(validate(settings, strict=True)) == 1


def test_log_format_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    settings = Settings.from_env(dotenv=False)
    assert settings.log_format == "json"
    assert settings.log_level == "DEBUG"
    assert collect_warnings(settings) == []


def test_cosmetic_problems_do_not_block_startup(capsys):
    settings = Settings(llm_api_key="real-key", log_format="xml", scrape_max_workers=0)
    problems = validate(settings, strict=True)
    assert len(problems) == 2
    assert "WARNING" in capsys.readouterr().err


def test_print_config_masks_secrets(capsys):
    print_config(Settings(llm_api_key="sk-very-secret", cron_secret="cron-secret"))
    out = capsys.readouterr().out
    assert "sk-very-secret" not in out
    assert "cron-secret" not in out
    key_line = next(line for line in out.splitlines() if "LLM_API_KEY" in line)
    assert key_line.endswith("set")
