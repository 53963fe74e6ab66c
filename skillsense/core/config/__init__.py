from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    database_path: str
    storage_root: str
    max_upload_bytes: int
    allowed_content_types: tuple[str, ...]
    ai_provider: str
    ai_model: str
    ai_max_input_chars: int
    analytics_enabled: bool
    github_api_url: str
    github_token: str | None
    github_timeout_s: float
    github_repo_limit: int
    session_ttl_days: int


settings = Settings(
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://localhost:3000",
        ],
    ),
    database_path=_get_env("DATABASE_PATH", "data/skillsense.db") or "data/skillsense.db",
    storage_root=_get_env("STORAGE_ROOT", "data/storage") or "data/storage",
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    allowed_content_types=_get_env_list(
        "ALLOWED_CONTENT_TYPES",
        [
            "application/pdf",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "text/plain",
        ],
    ),
    ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
    ai_model=(_get_env("AI_MODEL", "gpt-4o-mini") or "gpt-4o-mini").strip(),
    ai_max_input_chars=_get_env_int("AI_MAX_INPUT_CHARS", 20000),
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    github_api_url=(_get_env("GITHUB_API_URL", "https://api.github.com") or "https://api.github.com").rstrip("/"),
    github_token=_get_env("GITHUB_TOKEN"),
    github_timeout_s=float(_get_env("GITHUB_TIMEOUT_S", "15") or "15"),
    github_repo_limit=_get_env_int("GITHUB_REPO_LIMIT", 30),
    session_ttl_days=_get_env_int("SESSION_TTL_DAYS", 30),
)

if settings.ai_provider not in {"openai"}:
    raise RuntimeError("AI_PROVIDER must be 'openai'.")

__all__ = ["Settings", "settings"]
