from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    DATABASE_URL: str = Field(..., description="Async PostgreSQL connection string (postgresql+asyncpg://...)")

    # Redis
    REDIS_URL: str = Field("redis://localhost:6379/0")

    # Auth
    SESSION_SECRET: str = Field(..., description="Secret used to sign session tokens")
    TOKEN_TTL_SECONDS: int = 604800  # 7 days

    # Activation quiz
    QUIZ_PASSING_SCORE: float = 80
    QUIZ_MAX_ATTEMPTS: int = 3
    QUIZ_RATE_LIMIT_WINDOW_MINUTES: int = 60
    QUIZ_TARGET_ROLE: str = "doer"

    # Content analysis
    ANALYSIS_MAX_MATCHES: int = 10
    ANALYSIS_MAX_ISSUES: int = 20
    ANALYSIS_RATE_LIMIT_PER_MINUTE: int = 10

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Environment
    ENV: str = "production"  # development, staging, production
    DEBUG: bool = False

settings = Settings()
