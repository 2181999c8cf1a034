"""
Notification Service Factory

Returns Mock or Twilio notification service based on ENV_MODE.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from heypaytm.core.config import Settings, get_settings
from heypaytm.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)
from heypaytm.services.notifications.mock import MockNotificationService
from heypaytm.services.notifications.twilio import TwilioNotificationService

logger = logging.getLogger(__name__)


def create_notification_service(settings: Optional[Settings] = None) -> BaseNotificationService:
    """Build the notification service for the configured environment."""
    settings = settings or get_settings()

    if settings.is_development:
        logger.info("Notification Service: Using MockNotificationService (development mode)")
        return MockNotificationService(failure_rate=0.05)
    else:
        logger.info(f"Notification Service: Using TwilioNotificationService ({settings.env_mode.value} mode)")
        return TwilioNotificationService(settings)


__all__ = [
    "create_notification_service",
    "BaseNotificationService",
    "NotificationResult",
    "MockNotificationService",
    "TwilioNotificationService",
]
