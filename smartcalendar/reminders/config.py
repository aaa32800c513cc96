from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class ReminderSettings(BaseSettings):
    # Run the dispatch loop inside the API process
    ENABLED: bool = True

    # Scheduling
    SCAN_INTERVAL_SECONDS: float = 60
    BATCH_SIZE: int = 500

    # Celery configuration (alternative to the in-process loop)
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


settings = ReminderSettings()
