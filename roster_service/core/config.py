# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, read once at import.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "roster-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.4.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8005"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./roster.db")
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    # Document store limits
    BATCH_LIMIT: int = int(os.getenv("BATCH_LIMIT", "400"))

    # Remote sync
    SYNC_MAX_RETRIES: int = int(os.getenv("SYNC_MAX_RETRIES", "3"))
    SYNC_RETRY_BACKOFF: float = float(os.getenv("SYNC_RETRY_BACKOFF", "0.2"))
    MAX_SYNC_FAILURES: int = int(os.getenv("MAX_SYNC_FAILURES", "1000"))

    # Roster dates
    DEFAULT_PREVIOUS_COUNT: int = int(os.getenv("DEFAULT_PREVIOUS_COUNT", "5"))
    PREVIOUS_LOOKBACK_DAYS: int = int(os.getenv("PREVIOUS_LOOKBACK_DAYS", "366"))

    # Audit log
    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "10000"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    SEED_DEFAULT_METADATA: bool = (
        os.getenv("SEED_DEFAULT_METADATA", "true").lower() == "true"
    )


settings = Settings()
