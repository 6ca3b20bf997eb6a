from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str = "sqlite:///./bronzeledger.db"
    DATABASE_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Ingestion behaviour
    STRICT_CONVERSION: bool = False  # abort the whole run on an unconvertible payload
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # SentinelOne
    SENTINELONE_BASE_URL: str | None = None
    SENTINELONE_API_TOKEN: str | None = None
    SENTINELONE_PAGE_SIZE: int = 1000

    # DigitalOcean
    DIGITALOCEAN_BASE_URL: str = "https://api.digitalocean.com"
    DIGITALOCEAN_TOKEN: str | None = None
    DIGITALOCEAN_PAGE_SIZE: int = 200

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def sql_echo(self) -> bool:
        """SQL echo is only honoured in development."""
        return self.DATABASE_ECHO and self.is_development


settings = Settings()
