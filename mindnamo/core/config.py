import os
import logging
from datetime import date
from dotenv import load_dotenv
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional

# Load environment variables from .env file
load_dotenv(".env", override=False)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the Mind Namo admin application."""

    # ------------------------------
    # Database - Required
    # ------------------------------
    DATABASE_URL: str = Field(env="DATABASE_URL")
    DATABASE_ECHO: bool = Field(default=False, env="DATABASE_ECHO")

    # ------------------------------
    # Auth - Required
    # ------------------------------
    SECRET_KEY: str = Field(env="SECRET_KEY")
    ALGORITHM: str = Field(default="HS256", env="ALGORITHM")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=480, env="ACCESS_TOKEN_EXPIRE_MINUTES")
    MIN_PASSWORD_LENGTH: int = Field(default=8, env="MIN_PASSWORD_LENGTH")

    # ------------------------------
    # Rate limiting - Optional
    # ------------------------------
    RATE_LIMIT_STORAGE_URL: str = Field(default="", env="RATE_LIMIT_STORAGE_URL")
    RATE_LIMIT_REQUESTS: int = Field(default=5, env="RATE_LIMIT_REQUESTS")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, env="RATE_LIMIT_WINDOW_SECONDS")
    SIGNIN_IP_RATE_LIMIT: str = Field(default="20/minute", env="SIGNIN_IP_RATE_LIMIT")

    # ------------------------------
    # Verification codes
    # ------------------------------
    OTP_LENGTH: int = Field(default=6, env="OTP_LENGTH")
    OTP_TTL_MINUTES: int = Field(default=10, env="OTP_TTL_MINUTES")

    # ------------------------------
    # Email (Microsoft Graph application credentials) - Optional
    # ------------------------------
    MAIL_TENANT_ID: str = Field(default="", env="MAIL_TENANT_ID")
    MAIL_CLIENT_ID: str = Field(default="", env="MAIL_CLIENT_ID")
    MAIL_CLIENT_SECRET: str = Field(default="", env="MAIL_CLIENT_SECRET")
    MAIL_SENDER: str = Field(default="no-reply@mindnamo.com", env="MAIL_SENDER")

    # ------------------------------
    # AWS - Optional (avatar uploads)
    # ------------------------------
    AWS_ACCESS_KEY_ID: str = Field(default="", env="AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str = Field(default="", env="AWS_SECRET_ACCESS_KEY")
    AWS_S3_BUCKET: str = Field(default="", env="AWS_S3_BUCKET")
    AWS_REGION: str = Field(default="ap-southeast-2", env="AWS_REGION")
    AWS_S3_BASE_URL: str = Field(default="", env="AWS_S3_BASE_URL")

    # ------------------------------
    # Dashboard
    # ------------------------------
    REVENUE_WINDOW_START: Optional[date] = Field(default=None, env="REVENUE_WINDOW_START")

    # ------------------------------
    # URLs & Environment
    # ------------------------------
    FRONTEND_URL: str = Field(default="http://localhost:3000", env="FRONTEND_URL")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "mindnamo.models.account",
        "mindnamo.models.payment",
        "mindnamo.models.appointment",
        "mindnamo.models.expert",
        "mindnamo.models.report",
    ]

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def COOKIE_SECURE(self) -> bool:
        """Auth cookies are only marked secure outside development."""
        return self.ENVIRONMENT == "production"

    @computed_field
    @property
    def MAIL_CONFIGURED(self) -> bool:
        return bool(self.MAIL_TENANT_ID and self.MAIL_CLIENT_ID and self.MAIL_CLIENT_SECRET)

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()
