import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _build_default_database_url() -> str:
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "mba_tracker")
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    PROJECT_NAME: str = "MBA Tracker"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = Field(default_factory=_build_default_database_url)
    SQL_ECHO: bool = False

    AUDIT_ENABLED: bool = True
    DEFAULT_CURRENCY: str = "USD"
    MBA_NUMBER_PREFIX: str = "MBA"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value):
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return level

    @field_validator("DEFAULT_CURRENCY")
    @classmethod
    def _validate_currency(cls, value):
        code = str(value).strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("DEFAULT_CURRENCY must be a 3-letter ISO code")
        return code

    @field_validator("AUDIT_ENABLED")
    @classmethod
    def _validate_audit_enabled(cls, value, info):
        env = str(info.data.get("ENV", "dev")).lower()
        if env != "dev" and not value:
            raise ValueError("AUDIT_ENABLED must be true in non-dev environments")
        return value


settings = Settings()
