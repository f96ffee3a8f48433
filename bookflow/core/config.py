from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "America/Sao_Paulo"

    WORK_START: str = "08:00"
    WORK_END: str = "18:00"
    SLOT_STEP_MINUTES: int = 30

    RETRY_MAX_ATTEMPTS: int = 2
    RETRY_BASE_DELAY_MS: int = 1000
    MAX_ALTERNATIVES: int = 3

    SCHEDULING_API_BASE_URL: str | None = None
    SCHEDULING_API_KEY: str | None = None
    SCHEDULING_API_TIMEOUT: float = 10.0

    DEMO_TENANT_SLUG: str = "demo"


settings = Settings()
