"""
Configuration - Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a development default so the API boots against a local
  SQLite file without any environment at all.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from handygo.database.config.config import settings

# Example
lifetime = settings.SESSION_LIFETIME_SECONDS
allowed = settings.ALLOWED_EMAIL_DOMAINS

Security
--------
- Never commit secrets or the `.env` file to source control.
- `SECRET_KEY` signs the `session-id` cookie; override it in every deployment.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DB_DRIVER_NAME: str = Field("sqlite", description="SQLAlchemy driver name (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")
    DB_DATABASE_NAME: str = Field("handygo.db", description="Name of the database (file path for SQLite).")
    CREATE_TABLES_ON_STARTUP: bool = Field(True, description="Run `metadata.create_all` in the app lifespan.")

    # Sessions & cookies
    SECRET_KEY: str = Field("default-secret-key-change-in-production", description="Key used to sign session cookies.")
    ALGORITHM: str = Field("HS256", description="JWS algorithm used to sign the session cookie.")
    SESSION_LIFETIME_SECONDS: int = Field(604800, description="Sliding session lifetime (7 days).")
    SESSION_SWEEP_INTERVAL_SECONDS: int = Field(60, description="Interval of the expired-session sweep.")
    COOKIE_SECURE: bool = Field(False, description="Set the `Secure` flag on the session cookie (True in production).")
    REGISTRY_BACKEND: str = Field("memory", description="Backend of the session/verification registries.")

    # Registration policy
    VERIFICATION_CODE_TTL_SECONDS: int = Field(300, description="Lifetime of an emailed verification code (5 minutes).")
    ALLOWED_EMAIL_DOMAINS: List[str] = Field(["aalto.fi"], description="Email domains allowed to register.")
    REQUIRE_VERIFICATION_CODE: bool = Field(False, description="Reject registrations that carry no verification code.")

    # Outbound email
    SMTP_HOST: Optional[str] = Field(None, description="SMTP relay host; when unset the API runs in email dev mode.")
    SMTP_PORT: int = Field(587, description="SMTP relay port (STARTTLS).")
    SMTP_USER: Optional[str] = Field(None, description="SMTP login.")
    SMTP_PASSWORD: Optional[str] = Field(None, description="SMTP password / app password.")
    SENDER_EMAIL: str = Field("noreply@handygo.com", description="Default address used for sending application emails.")
    SENDER_NAME: str = Field("HandyGO", description="Display name used for sending application emails.")

    # HTTP
    FRONTEND_URLS: List[str] = Field(
        ["http://localhost:5173", "http://localhost:8000"],
        description="Origins allowed by CORS.",
    )
    LOG_LEVEL: str = Field("INFO", description="Root log level.")


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
