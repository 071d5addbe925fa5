# src/petpal_chat_service/config.py
from enum import Enum
from typing import List, Optional

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Configuration settings for the PetPal Chat Service.

    Loads from a .env file and environment variables.

    All environment variables are prefixed with PETPAL_CHAT_SERVICE_
    to avoid conflicts with other services.
    """

    model_config = SettingsConfigDict(
        env_file=".env.dev",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- GENERAL APP SETTINGS ---
    PROJECT_NAME: str = "PetPal Chat Service"
    DEBUG: bool = Field(False, alias="PETPAL_CHAT_SERVICE_DEBUG")
    ENVIRONMENT: Environment = Field(
        Environment.DEVELOPMENT, alias="PETPAL_CHAT_SERVICE_ENVIRONMENT"
    )
    LOGGING_LEVEL: str = Field("INFO", alias="PETPAL_CHAT_SERVICE_LOGGING_LEVEL")
    ROOT_PATH: str = Field("/api/v1", alias="PETPAL_CHAT_SERVICE_ROOT_PATH")

    # --- DATABASE SETTINGS ---
    DATABASE_URL: str = Field(..., alias="PETPAL_CHAT_SERVICE_DATABASE_URL")

    # --- CORS SETTINGS ---
    CORS_ALLOW_ORIGINS: List[str] = Field(
        ["http://localhost:5173"], alias="PETPAL_CHAT_SERVICE_CORS_ALLOW_ORIGINS"
    )

    # --- CHAT SETTINGS ---
    MAX_MESSAGE_LENGTH: int = Field(4000, alias="PETPAL_CHAT_SERVICE_MAX_MESSAGE_LENGTH")
    HISTORY_PAGE_SIZE: int = Field(50, alias="PETPAL_CHAT_SERVICE_HISTORY_PAGE_SIZE")
    SYSTEM_SENDER_EMAIL: str = Field(
        "system@petpal.local", alias="PETPAL_CHAT_SERVICE_SYSTEM_SENDER_EMAIL"
    )
    SYSTEM_SENDER_NAME: str = Field(
        "System", alias="PETPAL_CHAT_SERVICE_SYSTEM_SENDER_NAME"
    )
    SEND_MESSAGE_RATE_LIMIT: str = Field(
        "30/minute", alias="PETPAL_CHAT_SERVICE_SEND_MESSAGE_RATE_LIMIT"
    )

    # --- SESSION BINDING (optional) ---
    # When the secret is unset, sender identity is taken from the request body.
    AUTH_JWT_SECRET_KEY: Optional[str] = Field(
        None, alias="PETPAL_CHAT_SERVICE_AUTH_JWT_SECRET_KEY"
    )
    AUTH_JWT_ALGORITHM: str = Field(
        "HS256", alias="PETPAL_CHAT_SERVICE_AUTH_JWT_ALGORITHM"
    )
    AUTH_JWT_ISSUER: Optional[str] = Field(
        None, alias="PETPAL_CHAT_SERVICE_AUTH_JWT_ISSUER"
    )
    AUTH_JWT_AUDIENCE: Optional[str] = Field(
        None, alias="PETPAL_CHAT_SERVICE_AUTH_JWT_AUDIENCE"
    )

    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        return self.ENVIRONMENT == Environment.TESTING

    def session_binding_enabled(self) -> bool:
        return bool(self.AUTH_JWT_SECRET_KEY)

    @field_validator("DATABASE_URL", mode="after")
    def validate_db_url(cls, v: PostgresDsn) -> str:
        """Ensures the database URL uses the psycopg driver."""
        return str(v).replace("postgresql://", "postgresql+psycopg://")


settings = Settings()
