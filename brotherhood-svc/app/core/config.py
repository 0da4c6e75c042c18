from __future__ import annotations
from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")
    auth_jwks_url: str = Field(..., alias="AUTH_JWKS_URL")
    token_issuer: str = Field("auth-svc", alias="TOKEN_ISSUER")
    jwks_cache_ttl_sec: int = Field(3600, alias="JWKS_CACHE_TTL_SEC")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Redis (rate limiting on member submissions)
    redis_url: str = Field("redis://127.0.0.1:6379/0", alias="REDIS_URL")
    rl_enabled: bool = Field(default=True, alias="RL_ENABLED")
    rl_window_seconds: int = Field(default=60, alias="RL_WINDOW_SECONDS")
    rl_max_reqs: int = Field(default=20, alias="RL_MAX_REQS")

    # NATS (audit events)
    nats_urls: str = Field("nats://127.0.0.1:4222", alias="NATS_URLS")
    nats_subject_audit: str = Field("brotherhood.audit", alias="NATS_SUBJECT_AUDIT")
    enable_nats_events: bool = Field(default=True, alias="ENABLE_NATS_EVENTS")

    leaderboard_default_limit: int = Field(100, alias="LEADERBOARD_DEFAULT_LIMIT")
    points_list_limit: int = Field(500, alias="POINTS_LIST_LIMIT")
    # category that approved brother-date awards are booked under
    brother_date_category: str = Field("Brother Date", alias="BROTHER_DATE_CATEGORY")

    cors_origins: str = Field(
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        alias="CORS_ORIGINS",
    )

    class Config:
        env_file = ".env"
        env_prefix = ""
        case_sensitive = False

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

_settings: Settings | None = None
def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
