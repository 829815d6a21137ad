from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./joyeria.db"
    SECRET_KEY: str = "dev-insecure-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # CORS origins for the admin frontend
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"

    # Store clock: due dates and overdue checks use the store's local date
    STORE_TIMEZONE: str = "America/Costa_Rica"

    # Cash register
    REGISTER_NAME: str = "principal"
    DEFAULT_PAYMENT_TERMS_DAYS: int = 30

    # Day-summary memoisation
    SUMMARY_CACHE_TTL_SECONDS: int = 30
    SUMMARY_CACHE_MAX_ENTRIES: int = 32


settings = Settings()
