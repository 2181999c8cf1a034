"""
Mock SMS Provider

Development stand-in for Twilio: logs each bill instead of texting it and
keeps the messages in memory so they can be inspected.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import random
import uuid

from heypaytm.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):
    """
    Fake SMS gateway with a configurable failure rate and latency.

    Attributes:
        sent_messages: Every accepted message as {"id", "to", "body"}
    """

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.3,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.sent_messages: list[dict[str, str]] = []
        logger.info(f"Mock SMS gateway ready (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

        if random.random() < self.failure_rate:
            logger.warning(f"Mock SMS to {to_phone} dropped (simulated failure)")
            return self._failure("Simulated SMS failure")

        message_id = f"sms_mock_{uuid.uuid4().hex[:12]}"
        self.sent_messages.append({"id": message_id, "to": to_phone, "body": message})

        first_line = message.splitlines()[0] if message else ""
        logger.info(f"Mock SMS {message_id} to {to_phone}: {first_line}")
        return self._delivered(message_id)

    async def health_check(self) -> bool:
        return True
