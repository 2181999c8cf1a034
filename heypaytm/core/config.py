"""
Application Configuration Module

Every knob of the table service comes from environment variables (or a
local .env file) through Pydantic Settings.

ENV_MODE decides how bills reach customers:
    - development: MockNotificationService, nothing leaves the machine
    - staging / production: TwilioNotificationService, real SMS

Usage:
    from heypaytm.core.config import get_settings

    settings = get_settings()
    storage_file = settings.storage_path

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """Deployment flavour; anything but development sends real SMS."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Table service settings.

    Attributes:
        env_mode: development / staging / production
        debug: Verbose logging and error details in API responses

        # Local storage
        data_directory: Holds the session store and the Excel exports
        storage_filename: JSON document standing in for the device's localStorage
        storage_lock_timeout: Seconds to wait for the storage file lock

        # Dining room
        max_tables: Highest table number in the restaurant
        tax_rate: Tax applied on bills (decimal)
        enforce_status_progression: Reject backward order status moves

        # SMS (required outside development)
        twilio_account_sid / twilio_auth_token / twilio_phone_number
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # API SERVER
    # ==========================================================================

    app_name: str = Field(
        default="Hey Paytm Table Service",
        description="Shown in the API docs and the startup banner"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Reported by the root endpoint"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to"
    )
    api_port: int = Field(
        default=8001,
        description="Port uvicorn listens on"
    )

    # ==========================================================================
    # LOCAL STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for the storage document and Excel exports"
    )
    storage_filename: str = Field(
        default="local_storage.json",
        description="JSON document holding the persisted keys"
    )
    storage_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for the storage file lock"
    )

    # ==========================================================================
    # REDIS / CELERY
    # ==========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker and result backend"
    )
    celery_always_eager: bool = Field(
        default=False,
        description="Run Celery tasks inline instead of sending them to the broker"
    )

    # ==========================================================================
    # SMS
    # ==========================================================================

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = Field(
        default=None,
        description="Sender number for bills"
    )
    sms_country_code: str = Field(
        default="+91",
        description="Country prefix added to 10-digit numbers before sending"
    )

    # ==========================================================================
    # DINING ROOM
    # ==========================================================================

    restaurant_name: str = Field(
        default="Hey Paytm",
        description="Printed at the top of every bill"
    )
    max_tables: int = Field(
        default=24,
        ge=1,
        description="Number of tables in the dining room"
    )
    tax_rate: float = Field(
        default=0.05,
        ge=0,
        lt=1,
        description="Tax rate applied on bills (decimal)"
    )
    enforce_status_progression: bool = Field(
        default=True,
        description="Reject order status changes that move backward"
    )

    # ==========================================================================
    # EXCEL EXPORT
    # ==========================================================================

    excel_lock_timeout: int = Field(
        default=30,
        description="Seconds a worker waits for an Excel file lock"
    )

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Accept ENV_MODE in any case."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(str(v).strip().lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode '{v}'. Must be one of: {valid}")

    # ==========================================================================
    # DERIVED VALUES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Staging and production both talk to Twilio."""
        return not self.is_development

    @property
    def storage_path(self) -> Path:
        return Path(self.data_directory) / self.storage_filename

    def validate_production_config(self) -> list[str]:
        """Names of the SMS settings still missing when real services are on."""
        if not self.use_real_services:
            return []

        required = {
            "TWILIO_ACCOUNT_SID": self.twilio_account_sid,
            "TWILIO_AUTH_TOKEN": self.twilio_auth_token,
            "TWILIO_PHONE_NUMBER": self.twilio_phone_number,
        }
        return [name for name, value in required.items() if not value]


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "twilio.http_client", "filelock")


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure root logging to stdout; DEBUG wins when settings.debug is on.

    Returns:
        The package logger ("heypaytm")
    """
    if get_settings().debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger("heypaytm")
