from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "SAC Desk API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///./sacdesk.db"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    JWT_ALGORITHM: str = "HS256"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Redis cache for the active stage listing; 0 disables caching
    REDIS_CACHE_URL: str = "redis://localhost:6379/1"
    STAGE_CACHE_TTL: int = 60

    # Rate limiting of the public intake endpoints
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    PUBLIC_INTAKE_RATE_LIMIT: str = "10/minute"

    # Workflow
    RESOLVED_STAGE_SLUG: str = "resolved"
    TICKET_NUMBER_SEQUENCE: str = "tickets"
    # Stages left out of personal task lists
    CLOSED_STAGE_SLUGS: List[str] = ["resolved", "cancelled"]
    # Days ahead in which a deadline counts as upcoming
    UPCOMING_DEADLINE_DAYS: int = 7

    # Ticket attachments
    UPLOAD_DIR: str = "./uploads/ticket_attachments"
    MAX_ATTACHMENT_SIZE: int = 20 * 1024 * 1024
    MAX_TICKET_ATTACHMENTS_SIZE: int = 20 * 1024 * 1024

    # Global activity feeds (ticket history, system logs)
    ACTIVITY_FEED_LIMIT: int = 100

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: List[str] | str) -> List[str]:
        """Allow both comma-separated strings and list inputs."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
