from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables (or .env)."""

    APP_NAME: str = "Warehouse Stock-In Service"
    APP_VERSION: str = "1.0.0"

    # Persistence service (products REST API)
    PRODUCTS_API_URL: str = "http://localhost:5000/api/products"
    REQUEST_TIMEOUT: float = 10.0

    # Inventory cache
    REFRESH_ON_STARTUP: bool = True
    REFRESH_BEFORE_COMMIT: bool = False

    NOTIFICATION_HISTORY: int = 50
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
