"""Core application configuration and settings.

Handles environment variables, Firestore credentials, and application settings.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from google.auth import default
from google.oauth2 import service_account
from pydantic import Field
from pydantic_settings import BaseSettings


# Load environment variables
ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT / ".env")
load_dotenv()

DEFAULT_JWT_SECRET = "development-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google Cloud / Firestore
    project_id: str = Field(
        default_factory=lambda: (
            os.getenv("PROJECT_ID")
            or os.getenv("GOOGLE_CLOUD_PROJECT")
            or os.getenv("FIREBASE_PROJECT_ID")
            or ""
        ),
        alias="PROJECT_ID"
    )
    service_account_file: str = Field(
        default_factory=lambda: (
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
            or os.getenv("SERVICE_ACCOUNT_FILE")
            or ""
        ),
        alias="GOOGLE_APPLICATION_CREDENTIALS"
    )
    firestore_database: str = Field(default="(default)", alias="FIRESTORE_DATABASE")

    # Document store
    store_backend: str = Field(default="firestore", alias="STORE_BACKEND")
    users_collection: str = Field(default="users", alias="USERS_COLLECTION")
    products_collection: str = Field(default="products", alias="PRODUCTS_COLLECTION")

    # Redis (per-key locks)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    redis_locks_enabled: bool = Field(default=False, alias="REDIS_LOCKS_ENABLED")
    lock_timeout_seconds: int = Field(default=10, alias="LOCK_TIMEOUT_SECONDS")
    lock_blocking_timeout_seconds: int = Field(default=5, alias="LOCK_BLOCKING_TIMEOUT_SECONDS")

    # JWT Authentication
    jwt_secret_key: str = Field(default=DEFAULT_JWT_SECRET, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=1440, alias="ACCESS_TOKEN_EXPIRE_MINUTES")  # 24 hours
    bcrypt_rounds: int = Field(default=10, alias="BCRYPT_ROUNDS")

    # Application Settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # API Settings
    port: int = Field(default=3000, alias="PORT")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
        alias="CORS_ORIGINS"
    )

    class Config:
        case_sensitive = False
        env_file = ".env"
        populate_by_name = True
        extra = "ignore"

    def validate_required_settings(self):
        """Validate that required settings are present."""
        if self.store_backend not in ("firestore", "memory"):
            raise ValueError(
                f"STORE_BACKEND must be 'firestore' or 'memory', got '{self.store_backend}'."
            )
        if self.store_backend == "firestore" and not self.project_id:
            raise ValueError(
                "PROJECT_ID not set. Define PROJECT_ID in .env "
                "(or GOOGLE_CLOUD_PROJECT/FIREBASE_PROJECT_ID)."
            )
        if self.environment == "production" and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT_SECRET_KEY must be set to a secure value in production."
            )


# Global settings instance
settings = Settings()


def get_firestore_credentials():
    """Get credentials for Firestore (service account file or ADC).

    Returns:
        Credentials object

    Raises:
        google.auth.exceptions.DefaultCredentialsError: If no credentials
            can be found in the environment
    """
    scopes = [
        "https://www.googleapis.com/auth/cloud-platform",
        "https://www.googleapis.com/auth/datastore",
    ]
    if settings.service_account_file:
        return service_account.Credentials.from_service_account_file(
            settings.service_account_file,
            scopes=scopes
        )

    credentials, _ = default(scopes=scopes)
    return credentials


# Validate settings on module import (only in non-test environments)
if settings.environment != "test":
    try:
        settings.validate_required_settings()
    except ValueError as e:
        print(f"Configuration Error: {e}")
        # Don't raise in development to allow partial setup
        if settings.environment == "production":
            raise
