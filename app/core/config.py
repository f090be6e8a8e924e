from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Placement length; week numbers run 1..max_weeks
    max_weeks: int = Field(24, alias="MAX_WEEKS")

    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Retry of transient storage failures (idempotent operations only)
    db_retry_attempts: int = Field(3, alias="DB_RETRY_ATTEMPTS")
    db_retry_base_delay: float = Field(0.2, alias="DB_RETRY_BASE_DELAY")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
