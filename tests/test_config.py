"""
Settings loading from the environment.
"""

import logging

import pytest

from order_tracker.core.config import EnvironmentMode, Settings, get_settings, setup_logging


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "DB_URL", "HOST", "PORT", "API_HOST", "API_PORT", "ENV_MODE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.env_mode == EnvironmentMode.DEVELOPMENT
    assert settings.is_development
    assert settings.default_page_limit == 10
    assert settings.database_url.startswith("postgresql+psycopg://")


def test_short_variable_names_are_accepted(monkeypatch):
    monkeypatch.setenv("DB_URL", "sqlite+aiosqlite:///orders.db")
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9000")

    settings = get_settings()

    assert settings.database_url == "sqlite+aiosqlite:///orders.db"
    assert settings.uses_sqlite
    assert settings.api_host == "127.0.0.1"
    assert settings.api_port == 9000


def test_env_mode_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "Production")

    settings = Settings(_env_file=None)

    assert settings.is_production
    assert not settings.is_staging


def test_invalid_env_mode(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "qa")

    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_setup_logging_quiets_sqlalchemy(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")

    logger = setup_logging()

    assert logger.name == "order_tracker"
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
