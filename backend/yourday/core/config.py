from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "YourDay API"
    API_PREFIX: str = "/api"

    # DB
    DATABASE_URL: str = "sqlite:///./data/yourday.db"

    # Identity (tokens are issued by the external auth service sharing this secret)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_DAYS: int = 7

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # API client
    API_BASE_URL: str = "http://localhost:8000/api"
    REQUEST_TIMEOUT: float = 10.0

    class Config:
        env_file = ".env"

settings = Settings()
