from __future__ import annotations

import logging

import pytest

from wfload.config import (
    AppSettings,
    ConfigError,
    DatabaseSettings,
    LoaderSettings,
    LoggingSettings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = AppSettings()

    assert settings.app_name == "wfload"
    assert settings.loader.instance_separator == ":"
    assert settings.loader.true_flag == "Y"
    assert settings.logging.level == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("WFLOAD_LOADER__TRUE_FLAG", "T")
    monkeypatch.setenv("WFLOAD_LOGGING__LEVEL", "DEBUG")

    settings = get_settings()

    assert settings.loader.true_flag == "T"
    assert settings.logging.level == "DEBUG"


def test_init_overrides_have_highest_precedence(monkeypatch):
    monkeypatch.setenv("WFLOAD_APP_NAME", "from-env")

    settings = get_settings(app_name="from-init")

    assert settings.app_name == "from-init"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_separator_must_be_single_character():
    with pytest.raises(ValueError):
        LoaderSettings(instance_separator="::")


def test_invalid_config_raises_config_error(monkeypatch):
    monkeypatch.setenv("WFLOAD_LOADER__INSTANCE_SEPARATOR", "")

    with pytest.raises(ConfigError):
        get_settings()


def test_logging_configure():
    LoggingSettings(level="WARNING").configure()
    assert logging.getLogger().level == logging.WARNING

    LoggingSettings(level="INFO").configure()
    assert logging.getLogger().level == logging.INFO


def test_database_create_engine():
    engine = DatabaseSettings(url="sqlite://").create_engine()
    try:
        assert engine.dialect.name == "sqlite"
    finally:
        engine.dispose()
