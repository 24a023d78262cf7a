"""
Application configuration loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Document store
    store_backend: str = "memory"  # 'memory' or 'sql'
    database_url: str = "sqlite+aiosqlite:///./teamsync.db"
    # Reject queries that would need a composite index, like a hosted document DB
    strict_indexes: bool = False

    # Local timezone used for "today" day keys (None = server local time)
    timezone: Optional[str] = None

    # Meeting reminders
    reminder_enabled: bool = True
    reminder_interval_seconds: float = 5 * 60
    reminder_tolerance_seconds: float = 2 * 60
    reminder_lookahead_days: int = 7
    reminder_ledger: str = "memory"  # 'memory' or 'store'

    # Feeds
    activity_feed_limit: int = 50
    notification_feed_limit: int = 50
    upcoming_meetings_limit: int = 10

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006"

    class Config:
        env_file = ".env"
        env_prefix = "TEAMSYNC_"
        extra = "ignore"


settings = Settings()
