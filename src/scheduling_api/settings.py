"""
scheduling_api.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT and session secrets).
- Offer a cached settings instance for process entrypoints (API, worker, migrations).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single settings object injected across layers.

    Every field can be overridden with an `SCHED_`-prefixed environment variable,
    e.g. `SCHED_DATABASE_READ_URL` or `SCHED_REDIS_URL`.
    """

    model_config = SettingsConfigDict(env_prefix="SCHED_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev endpoints.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "scheduling-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Persistence: writes go to `database_url`; reads go to the replica when configured.
    database_url: str = "sqlite+aiosqlite:///./scheduling.db"
    database_read_url: str | None = None
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_timeout_seconds: float = 30.0

    # Redis backs the cache, the rate limiter and the job queue. Unset -> in-process backends.
    redis_url: str | None = Field(default=None, repr=False)

    # OAuth2 access tokens (JWT)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "scheduling-api"
    jwt_audience: str = "scheduling-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 365

    # Session cookies (JWT signed with a separate secret)
    session_secret: str = Field(default="dev-session-secret-change-me", repr=False)
    session_cookie_name: str = "session-token"

    # API keys
    api_key_prefix: str = "sched_"

    # Guard-result caching
    auth_cache_ttl_seconds: int = 60

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default_limit: int = 120
    rate_limit_default_window_seconds: int = 60
    rate_limit_default_block_seconds: int = 60
    rate_limit_cache_ttl_seconds: int = 300

    # Date-based API versioning
    api_version_header: str = "api-version"

    # Background jobs
    job_max_tries: int = 5
    job_backoff_base_seconds: float = 5.0
    job_backoff_max_seconds: float = 600.0
    webhook_timeout_seconds: float = 10.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars in long-lived entrypoints.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The API reads settings from `app.state.settings` (see `api.deps.settings_dep`) so tests
# can build apps with explicit settings; `get_settings` is for process entrypoints.
