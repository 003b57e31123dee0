from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ReminderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLARECARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared secret presented by the scheduler
    CRON_SECRET: Optional[str] = None

    # Record store (SQLAlchemy URL + privileged credential)
    STORE_URL: Optional[str] = None
    STORE_SERVICE_KEY: Optional[str] = None

    # Web Push / VAPID
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_SUBJECT: str = "mailto:support@flarecare.app"
    PUSH_TTL_SECONDS: int = 60
    PUSH_TIMEOUT_SECONDS: float = 10.0
    PUSH_MAX_WORKERS: int = 8

    # User access tokens for the registration endpoint
    AUTH_JWT_SECRET: Optional[str] = None
    AUTH_JWT_ALGORITHM: str = "HS256"

    # Due detection
    REMINDER_WINDOW_MINUTES: int = 15
    TIMEZONE: str = "UTC"  # zone of the stored wall-clock date/time fields

    # Periodic trigger
    SERVICE_URL: Optional[str] = None
    SCHEDULER_SCAN_INTERVAL_SECONDS: int = 300
    CELERY_BROKER_URL: Optional[str] = None

    # Metrics
    METRICS_ENABLED: bool = False

    def missing_push_config(self) -> list:
        """Names of the values a cron run cannot start without."""
        required = {
            "STORE_URL": self.STORE_URL,
            "STORE_SERVICE_KEY": self.STORE_SERVICE_KEY,
            "VAPID_PRIVATE_KEY": self.VAPID_PRIVATE_KEY,
        }
        return [name for name, value in required.items() if not value]


settings = ReminderSettings()


def get_settings() -> ReminderSettings:
    return settings
