from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "billing"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/billing.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Invoicing
    INVOICE_TAX_RATE: Decimal = Field(default=Decimal("0.15"), ge=0, le=1, decimal_places=6)
    DEFAULT_CURRENCY: str = Field(default="usd", min_length=3, max_length=3)

    # Used to build pay links in customer notifications
    APP_BASE_URL: str = "http://localhost:8000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def version(self) -> str:
        return "0.1.0"


settings = Settings()
