from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator, model_validator
import json
from urllib.parse import quote_plus
from enum import Enum

class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "SmartCalendar"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # Server settings
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database - PostgreSQL when POSTGRES_SERVER is set, local SQLite otherwise
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    SQLITE_PATH: str = "smartcalendar.db"

    # API keys
    VALID_API_KEYS: Annotated[List[str], NoDecode] = []
    REQUIRE_API_KEY: bool = True

    # Email (SMTP)
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_SSL: bool = False  # implicit TLS (port 465); STARTTLS otherwise
    SMTP_TIMEOUT_SECONDS: int = 30
    FROM_EMAIL: Optional[str] = None
    FRONTEND_URL: str = "http://localhost:5000"  # Base URL for "view event" links

    # Timezone used to render event times in reminder emails
    DEFAULT_TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"

    # --- Validators & Derived Settings ---
    @field_validator("VALID_API_KEYS", mode="before")
    @classmethod
    def parse_api_keys(cls, v):
        # Accept a JSON list or a comma-separated string from the environment
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except (json.JSONDecodeError, TypeError):
                parsed = [key.strip() for key in v.split(",") if key.strip()]
            if isinstance(parsed, str):
                parsed = [parsed]
            return parsed
        return v

    @model_validator(mode="after")
    def _finalize_and_validate(self) -> "Settings":
        # Derive SQLALCHEMY_DATABASE_URI if not provided
        if not self.SQLALCHEMY_DATABASE_URI:
            if self.POSTGRES_SERVER and self.POSTGRES_USER and self.POSTGRES_DB:
                safe_user = quote_plus(self.POSTGRES_USER)
                if self.POSTGRES_PASSWORD:
                    safe_password = quote_plus(self.POSTGRES_PASSWORD)
                    self.SQLALCHEMY_DATABASE_URI = (
                        f"postgresql://{safe_user}:{safe_password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
                    )
                else:
                    self.SQLALCHEMY_DATABASE_URI = (
                        f"postgresql://{safe_user}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
                    )
            else:
                self.SQLALCHEMY_DATABASE_URI = f"sqlite:///{self.SQLITE_PATH}"

        if self.is_production and not self.FRONTEND_URL.startswith("https://"):
            raise ValueError("FRONTEND_URL must use HTTPS in production")
        return self

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra='ignore')

settings = Settings()
