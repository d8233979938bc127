from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/tvsync.db"
    log_level: str = "INFO"

    http_timeout_sec: float = 5.0
    response_sample_chars: int = 500  # Diagnostic sample kept from each sync response

    sync_cron: str = "0 */6 * * *"  # Every 6 hours
    sync_schedule_enabled: bool = True
    sync_misfire_grace_sec: int = 3600
    sync_on_startup: bool = False

    sqlite_journal_mode: str = "WAL"
    sqlite_cache_size_kb: int = 64000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_http_timeout(cls, value: float) -> float:
        """Validate HTTP timeout (seconds)."""
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("response_sample_chars", "sqlite_cache_size_kb")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("sync_misfire_grace_sec")
    @classmethod
    def validate_misfire_grace(cls, value: int) -> int:
        """Validate scheduler misfire grace period (seconds)."""
        if value < 0:
            raise ValueError("sync_misfire_grace_sec must be >= 0")
        return value

    @field_validator("sqlite_journal_mode")
    @classmethod
    def validate_journal_mode(cls, value: str) -> str:
        """Validate SQLite journal mode."""
        normalized = value.upper()
        allowed = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
        if normalized not in allowed:
            raise ValueError(f"sqlite_journal_mode must be one of {sorted(allowed)}")
        return normalized

    @field_validator("sync_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  HTTP Timeout: %ss", self.http_timeout_sec)
        logger.info(
            "  Sync Schedule: %s",
            self.sync_cron if self.sync_schedule_enabled else "disabled",
        )
        logger.info("  Sync Misfire Grace: %ss", self.sync_misfire_grace_sec)
        logger.info("  Sync On Startup: %s", self.sync_on_startup)
        logger.info("  SQLite Journal Mode: %s", self.sqlite_journal_mode)
        logger.info("  SQLite Cache Size (KB): %s", self.sqlite_cache_size_kb)


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
