from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Billing Engine"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/billing.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Billing cycle defaults
    DEFAULT_BILLING_CYCLE: str = "monthly"
    DEFAULT_CYCLE_EFFECTIVE_DATE: str = "2023-01-01T00:00:00Z"

    # External tax rate service (empty = use the tax_rates table)
    TAX_SERVICE_URL: str = ""
    TAX_SERVICE_TIMEOUT_SECONDS: float = 10.0
    TAX_SERVICE_MAX_ATTEMPTS: int = 1
    TAX_SERVICE_BACKOFF_SECONDS: float = 0.5

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def tax_service_enabled(self) -> bool:
        return bool(self.TAX_SERVICE_URL)


settings = Settings()
