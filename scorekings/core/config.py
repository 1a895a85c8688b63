from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./scorekings.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # admin endpoints answer 401 while this is unset
    ADMIN_API_KEY: str | None = None

    REQUEST_TIMEOUT_SECONDS: float = 10.0
    BCRYPT_ROUNDS: int = 12
    LOG_LEVEL: str = "INFO"
    DEFAULT_PAYOUT_MULTIPLIER: Decimal = Decimal("3")
    MIN_WITHDRAWAL: Decimal = Decimal("10.00")

    # This configures how the settings are loaded
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Create a single instance to be used across the app
settings = Settings()
