import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_CATALOG_API_URL = "http://localhost:8080"


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name, "")
    return raw.strip() or default


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_temperature: float = 0.7
    catalog_api_url: str = DEFAULT_CATALOG_API_URL
    catalog_timeout_seconds: float = 10.0
    chat_rate_limit_max: int = 10
    slow_request_log_ms: float = 750.0
    port: int = 5000
    debug: bool = True

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_model=_env_str("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            openai_temperature=_env_float("OPENAI_TEMPERATURE", 0.7),
            catalog_api_url=_env_str("CATALOG_API_URL", DEFAULT_CATALOG_API_URL).rstrip("/"),
            catalog_timeout_seconds=_env_float("CATALOG_TIMEOUT_SECONDS", 10.0, minimum=0.1),
            chat_rate_limit_max=_env_int("CHAT_RATE_LIMIT_MAX", 10),
            slow_request_log_ms=_env_float("SLOW_REQUEST_LOG_MS", 750.0),
            port=_env_int("PORT", 5000),
            debug=os.environ.get("FLASK_DEBUG", "1") == "1",
        )
