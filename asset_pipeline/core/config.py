# Standard library imports
import os
from typing import Final, List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Application settings loaded from environment variables.

    This class centralizes all configuration settings for the application.
    All settings are loaded from environment variables with sensible defaults.
    """

    def __init__(self) -> None:
        # Database Configuration
        self.mongo_uri: Final[str] = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.mongo_database_name: Final[str] = os.getenv("MONGO_DB_NAME", "asset_pipeline")

        # JWT Configuration (same key signs API and WebSocket credentials)
        self.jwt_secret_key: Final[str] = os.getenv("JWT_SECRET_KEY", "change_this_secret_in_production")
        self.jwt_algorithm: Final[str] = os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes: Final[int] = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
        )

        # Analysis service Configuration
        self.ai_service_url: Final[str] = os.getenv("AI_SERVICE_URL", "")
        self.ai_service_timeout_seconds: Final[float] = float(
            os.getenv("AI_SERVICE_TIMEOUT_SECONDS", "90")
        )

        # Job queue Configuration
        self.queue_name: Final[str] = os.getenv("QUEUE_NAME", "ai-processing")
        self.queue_max_attempts: Final[int] = int(os.getenv("QUEUE_MAX_ATTEMPTS", "3"))
        self.queue_max_stalled_count: Final[int] = int(os.getenv("QUEUE_MAX_STALLED_COUNT", "2"))
        self.queue_backoff_base_ms: Final[int] = int(os.getenv("QUEUE_BACKOFF_BASE_MS", "2000"))
        self.queue_job_timeout_ms: Final[int] = int(os.getenv("QUEUE_JOB_TIMEOUT_MS", "120000"))
        self.queue_retain_completed_seconds: Final[int] = int(
            os.getenv("QUEUE_RETAIN_COMPLETED_SECONDS", str(24 * 3600))
        )
        self.queue_retain_failed_seconds: Final[int] = int(
            os.getenv("QUEUE_RETAIN_FAILED_SECONDS", str(7 * 24 * 3600))
        )

        # Worker pool Configuration
        self.worker_enabled: Final[bool] = _env_bool("WORKER_ENABLED", "true")
        self.worker_concurrency: Final[int] = int(os.getenv("WORKER_CONCURRENCY", "5"))
        self.worker_poll_interval_seconds: Final[float] = float(
            os.getenv("WORKER_POLL_INTERVAL_SECONDS", "1.0")
        )
        self.worker_stalled_check_seconds: Final[float] = float(
            os.getenv("WORKER_STALLED_CHECK_SECONDS", "30")
        )
        self.worker_drain_timeout_seconds: Final[float] = float(
            os.getenv("WORKER_DRAIN_TIMEOUT_SECONDS", "30")
        )

        # WebSocket Configuration
        self.ws_handshake_timeout_seconds: Final[float] = float(
            os.getenv("WS_HANDSHAKE_TIMEOUT_SECONDS", "10")
        )

        # HTTP / logging
        self.cors_origins: Final[List[str]] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
            ).split(",")
            if origin.strip()
        ]
        self.log_level: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()


# Global settings instance (singleton pattern)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton pattern)

    Returns:
        Settings instance with all configuration values
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
