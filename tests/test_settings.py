import pytest

from settings import DEFAULT_CATALOG_API_URL, DEFAULT_OPENAI_MODEL, Settings

_ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_TEMPERATURE",
    "CATALOG_API_URL",
    "CATALOG_TIMEOUT_SECONDS",
    "CHAT_RATE_LIMIT_MAX",
    "SLOW_REQUEST_LOG_MS",
    "PORT",
    "FLASK_DEBUG",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings.from_env(dotenv=False)
    assert s.openai_api_key is None
    assert s.openai_model == DEFAULT_OPENAI_MODEL
    assert s.catalog_api_url == DEFAULT_CATALOG_API_URL
    assert s.chat_rate_limit_max == 10
    assert s.port == 5000
    assert s.debug is True


def test_overrides(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-x")
    clean_env.setenv("OPENAI_MODEL", "gpt-4o")
    clean_env.setenv("CATALOG_API_URL", "http://catalog:8080/")
    clean_env.setenv("CATALOG_TIMEOUT_SECONDS", "2.5")
    clean_env.setenv("CHAT_RATE_LIMIT_MAX", "3")
    clean_env.setenv("FLASK_DEBUG", "0")
    s = Settings.from_env(dotenv=False)
    assert s.openai_api_key == "sk-x"
    assert s.openai_model == "gpt-4o"
    assert s.catalog_api_url == "http://catalog:8080"
    assert s.catalog_timeout_seconds == 2.5
    assert s.chat_rate_limit_max == 3
    assert s.debug is False


def test_malformed_numbers_fall_back(clean_env):
    clean_env.setenv("CHAT_RATE_LIMIT_MAX", "lots")
    clean_env.setenv("OPENAI_TEMPERATURE", "warm")
    clean_env.setenv("PORT", "")
    s = Settings.from_env(dotenv=False)
    assert s.chat_rate_limit_max == 10
    assert s.openai_temperature == 0.7
    assert s.port == 5000


def test_minimums_enforced(clean_env):
    clean_env.setenv("CHAT_RATE_LIMIT_MAX", "0")
    clean_env.setenv("CATALOG_TIMEOUT_SECONDS", "0")
    s = Settings.from_env(dotenv=False)
    assert s.chat_rate_limit_max == 1
    assert s.catalog_timeout_seconds == 0.1
