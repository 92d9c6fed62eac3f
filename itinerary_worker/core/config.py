"""
Application configuration using Pydantic Settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Itinerary Worker"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "itinerary_worker"
    ITINERARY_COLLECTION: str = "itineraries"

    # OpenAI-compatible generation endpoint.
    # Point OPENAI_BASE_URL at e.g. Gemini's OpenAI endpoint to switch providers.
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: Optional[str] = None

    # Generation retry policy
    GENERATION_MAX_RETRIES: int = 3
    GENERATION_RETRY_DELAY_SECONDS: float = 0.5
    GENERATION_TIMEOUT_SECONDS: float = 60.0
    GENERATION_TEMPERATURE: float = 0.7

    # Extra attempts for the terminal job write
    STORE_WRITE_RETRIES: int = 2

    # Background generation
    SCHEDULER_BACKEND: Literal["inprocess", "celery"] = "inprocess"
    SHUTDOWN_DRAIN_TIMEOUT_SECONDS: float = 30.0

    # Request limits
    MAX_REQUEST_BODY_BYTES: int = 16_000

    # Celery (AWS SQS broker)
    CELERY_BROKER_URL: str = "sqs://"
    CELERY_QUEUE_PREFIX: str = "itinerary-"
    AWS_REGION: str = ""
    SQS_DEFAULT_QUEUE_URL: str = ""
    CELERY_VISIBILITY_TIMEOUT: int = 900
    CELERY_POLLING_INTERVAL: float = 1.0
    CELERY_WAIT_TIME_SECONDS: int = 10
    CELERY_TASK_TIME_LIMIT: Optional[int] = None
    CELERY_TASK_SOFT_TIME_LIMIT: Optional[int] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
