from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Database
        self.database_url: str = os.getenv("DATABASE_URL", "")
        self.db_pool_size: int = _int_env("DB_POOL_SIZE", 5)
        self.db_max_overflow: int = _int_env("DB_MAX_OVERFLOW", 5)
        self.db_pool_timeout: int = _int_env("DB_POOL_TIMEOUT", 5)
        self.db_connect_timeout: int = _int_env("DB_CONNECT_TIMEOUT", 5)
        # Auth
        self.jwt_secret: str = os.getenv("JWT_SECRET", "")
        self.jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
        # Uploads (payment proofs, submissions, certificates)
        self.upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
        self.upload_base_url: str = os.getenv("UPLOAD_BASE_URL", "/uploads").rstrip("/")
        # Workflow tunables
        self.resubmission_window_days: int = _int_env("RESUBMISSION_WINDOW_DAYS", 7)
        self.default_pass_percentage: int = _int_env("DEFAULT_PASS_PERCENTAGE", 75)
        self.default_certificate_price: int = _int_env("DEFAULT_CERTIFICATE_PRICE", 499)
        self.default_duration_days: int = _int_env("DEFAULT_DURATION_DAYS", 35)
        self.default_task_points: int = _int_env("DEFAULT_TASK_POINTS", 10)
        self.default_wait_time_hours: int = _int_env("DEFAULT_WAIT_TIME_HOURS", 12)
        self.default_max_attempts: int = _int_env("DEFAULT_MAX_ATTEMPTS", 3)
        self.certificate_prefix: str = os.getenv("CERTIFICATE_PREFIX", "CERT")
        # App meta
        self.app_name: str = "InternHub LMS"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.allow_origins: str = os.getenv("ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
