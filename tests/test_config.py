import pytest
from pydantic import ValidationError

from restaurant_api.core.config import EnvironmentMode, Settings


def test_defaults_come_from_environment():
    settings = Settings()

    assert settings.database_url.startswith("sqlite+aiosqlite")
    assert settings.api_port == 3000
    assert settings.top_customers_limit == 5


def test_env_mode_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "PRODUCTION")

    settings = Settings()

    assert settings.env_mode == EnvironmentMode.PRODUCTION


def test_invalid_env_mode(monkeypatch):
    monkeypatch.setenv("ENV_MODE", "qa")

    with pytest.raises(ValidationError):
        Settings()


def test_database_url_override(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://user:pw@db:5432/orders")

    assert Settings().database_url == "postgresql+psycopg://user:pw@db:5432/orders"
