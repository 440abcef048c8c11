from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str

    REDIS_URL: str

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    RATE_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 600  # 10 minutes

    IDEMPOTENCY_TTL: int = 300  # 5 minutes

    CHANGE_FEED_PREFIX: str = "changes"

    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM: str = "Top Powdercoating <notifications@toppowdercoating.com>"
    EMAIL_TIMEOUT: int = 10
    EMAIL_RETRIES: int = 1

    CELERY_BROKER_URL: str
    CELERY_BACKEND: str

    TEAM_EMAIL_DOMAIN: str = "toppowdercoating.com"
    CURRENCY_SYMBOL: str = "₱"

    API_TITLE: str = "Powder Coating Order Service"
    API_DESCRIPTION: str = "Order lifecycle, quote negotiation and team assignment API"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
