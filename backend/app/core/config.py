from typing import Literal

from pydantic import HttpUrl, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.database import DatabaseConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "starter-kit"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("")
    POSTGRES_DB: str = "app"
    POSTGRES_DISABLE_TLS: bool = False

    # Seconds. Readiness endpoint vs. startup gate (the gate waits for the DB to come up).
    DB_STATUS_CHECK_TIMEOUT: float = 5.0
    DB_PRE_START_TIMEOUT: float = 300.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_config(self) -> DatabaseConfig:
        return DatabaseConfig(
            user=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=f"{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}",
            name=self.POSTGRES_DB,
            disable_tls=self.POSTGRES_DISABLE_TLS,
        )


settings = Settings()  # type: ignore
