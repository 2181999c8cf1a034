"""
Twilio SMS Provider

Sends bills through the Twilio REST API. Local 10-digit numbers get the
configured country prefix (+91 by default) before sending.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from heypaytm.core.config import Settings, get_settings
from heypaytm.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class TwilioNotificationService(BaseNotificationService):
    """SMS over Twilio; the blocking client runs in a worker thread."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.country_code = settings.sms_country_code
        self.from_number = settings.twilio_phone_number
        self.client: Optional[TwilioClient] = None

        if settings.twilio_account_sid and settings.twilio_auth_token:
            self.client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
            logger.info(f"Twilio SMS ready (from {self.from_number})")
        else:
            logger.warning("Twilio credentials not configured; bills will not be sent")

    @property
    def provider_name(self) -> str:
        return "twilio"

    def to_e164(self, phone: str) -> str:
        return phone if phone.startswith("+") else f"{self.country_code}{phone}"

    async def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        if not self.client:
            return self._failure("Twilio not configured")

        try:
            sent = await asyncio.to_thread(
                self.client.messages.create,
                body=message,
                from_=self.from_number,
                to=self.to_e164(to_phone),
            )
        except TwilioException as e:
            logger.error(f"Twilio rejected SMS to {to_phone}: {e}")
            return self._failure(str(e))

        logger.info(f"SMS {sent.sid} sent to {to_phone}")
        return self._delivered(sent.sid)

    async def health_check(self) -> bool:
        """Fetch our own account record as a reachability probe."""
        if not self.client:
            return False
        try:
            await asyncio.to_thread(self.client.api.accounts(self.client.username).fetch)
        except TwilioException as e:
            logger.error(f"Twilio health check failed: {e}")
            return False
        return True
