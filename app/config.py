"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the Amor service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  gemini_api_key: str | None
  lyrics_model: str
  embedding_model: str
  suno_api_key: str | None
  suno_base_url: str
  suno_model_version: str
  suno_timeout_seconds: float
  reference_count: int
  match_threshold: float
  poll_max_attempts: int
  poll_interval_seconds: float
  poll_backoff_multiplier: float
  poll_backoff_cap_seconds: float
  placeholder_delay_seconds: float
  placeholder_on_submit_failure: bool


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("AMOR_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("AMOR_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("AMOR_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("AMOR_ENV", "development").lower()

  # Toggle verbose error output and SQL echo in non-production environments.
  debug = _parse_bool(os.getenv("AMOR_DEBUG"))

  log_max_bytes = _positive_int("AMOR_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("AMOR_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("AMOR_LOG_BACKUP_COUNT must be zero or a positive integer.")

  match_threshold = float(os.getenv("AMOR_MATCH_THRESHOLD", "0.01"))
  if not -1.0 <= match_threshold <= 1.0:
    raise ValueError("AMOR_MATCH_THRESHOLD must be between -1 and 1.")

  poll_backoff_multiplier = float(os.getenv("AMOR_POLL_BACKOFF_MULTIPLIER", "1.5"))
  if poll_backoff_multiplier < 1.0:
    raise ValueError("AMOR_POLL_BACKOFF_MULTIPLIER must be at least 1.")

  placeholder_delay_seconds = float(os.getenv("AMOR_PLACEHOLDER_DELAY_SECONDS", "2"))
  if placeholder_delay_seconds < 0:
    raise ValueError("AMOR_PLACEHOLDER_DELAY_SECONDS must not be negative.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("AMOR_ALLOWED_ORIGINS")),
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("AMOR_LOG_HTTP_4XX")),
    pg_dsn=os.getenv("AMOR_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_positive_int("AMOR_PG_CONNECT_TIMEOUT", "5"),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    lyrics_model=(os.getenv("AMOR_LYRICS_MODEL") or "gemini-2.5-pro").strip(),
    embedding_model=(os.getenv("AMOR_EMBEDDING_MODEL") or "text-embedding-004").strip(),
    suno_api_key=_optional_str(os.getenv("SUNO_API_KEY")),
    suno_base_url=(os.getenv("AMOR_SUNO_BASE_URL") or "https://api.sunoapi.com").strip().rstrip("/"),
    suno_model_version=(os.getenv("AMOR_SUNO_MODEL_VERSION") or "chirp-v5").strip(),
    suno_timeout_seconds=_positive_float("AMOR_SUNO_TIMEOUT_SECONDS", "30"),
    reference_count=_positive_int("AMOR_REFERENCE_COUNT", "3"),
    match_threshold=match_threshold,
    poll_max_attempts=_positive_int("AMOR_POLL_MAX_ATTEMPTS", "15"),
    poll_interval_seconds=_positive_float("AMOR_POLL_INTERVAL_SECONDS", "30"),
    poll_backoff_multiplier=poll_backoff_multiplier,
    poll_backoff_cap_seconds=_positive_float("AMOR_POLL_BACKOFF_CAP_SECONDS", "120"),
    placeholder_delay_seconds=placeholder_delay_seconds,
    placeholder_on_submit_failure=_parse_bool(os.getenv("AMOR_PLACEHOLDER_ON_SUBMIT_FAILURE"), default=True),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  # Keep database configuration isolated so offline scripts don't require unrelated env vars.
  debug = _parse_bool(os.getenv("AMOR_DEBUG"))
  pg_connect_timeout = _positive_int("AMOR_PG_CONNECT_TIMEOUT", "5")

  # Support fallback to DATABASE_URL for hosted Postgres providers.
  pg_dsn = os.getenv("AMOR_PG_DSN") or os.getenv("DATABASE_URL")

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value
