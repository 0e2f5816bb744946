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


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
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
    analyze_rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    max_upload_bytes: int
    http_timeout_s: float
    serpapi_api_key: str | None
    search_max_workers: int
    search_results_per_query: int
    search_news_max_results: int
    rapidapi_key: str | None
    proxycurl_api_key: str | None
    pdfco_api_key: str | None
    jobspikr_client_id: str | None
    jobspikr_auth_key: str | None
    lightcast_client_id: str | None
    lightcast_client_secret: str | None
    adzuna_app_id: str | None
    adzuna_app_key: str | None
    skill_demand_limit: int
    llm_enabled: bool
    openai_api_key: str | None
    openai_base_url: str | None
    openai_model: str
    llm_timeout_s: float
    llm_max_retries: int


settings = Settings(
    rate_limit=_get_env("RATE_LIMIT", "10/minute") or "10/minute",
    analyze_rate_limit=_get_env("ANALYZE_RATE_LIMIT", "3/minute") or "3/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    http_timeout_s=_get_env_float("HTTP_TIMEOUT_S", 20.0),
    serpapi_api_key=_get_env("SERPAPI_API_KEY"),
    search_max_workers=_get_env_int("SEARCH_MAX_WORKERS", 8),
    search_results_per_query=_get_env_int("SEARCH_RESULTS_PER_QUERY", 40),
    search_news_max_results=_get_env_int("SEARCH_NEWS_MAX_RESULTS", 20),
    rapidapi_key=_get_env("RAPIDAPI_KEY"),
    proxycurl_api_key=_get_env("PROXYCURL_API_KEY"),
    pdfco_api_key=_get_env("PDFCO_API_KEY"),
    jobspikr_client_id=_get_env("JOBSPIKR_CLIENT_ID"),
    jobspikr_auth_key=_get_env("JOBSPIKR_AUTH_KEY"),
    lightcast_client_id=_get_env("LIGHTCAST_CLIENT_ID"),
    lightcast_client_secret=_get_env("LIGHTCAST_CLIENT_SECRET"),
    adzuna_app_id=_get_env("ADZUNA_APP_ID"),
    adzuna_app_key=_get_env("ADZUNA_APP_KEY"),
    skill_demand_limit=_get_env_int("SKILL_DEMAND_LIMIT", 15),
    llm_enabled=_get_env_bool("LLM_ENABLED", True),
    openai_api_key=_get_env("OPENAI_API_KEY"),
    openai_base_url=_get_env("OPENAI_BASE_URL"),
    openai_model=_get_env("AI_MODEL", _get_env("OPENAI_MODEL", "gpt-4o-mini")) or "gpt-4o-mini",
    llm_timeout_s=_get_env_float("LLM_TIMEOUT_S", 60.0),
    llm_max_retries=_get_env_int("OPENAI_MAX_RETRIES", 2),
)

if settings.search_max_workers < 1:
    raise RuntimeError("SEARCH_MAX_WORKERS must be at least 1.")
