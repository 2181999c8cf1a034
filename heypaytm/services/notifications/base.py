"""
SMS Provider Interface

Bills are texted to the 10-digit number the customer leaves at the table.
Development uses the mock provider; staging and production use Twilio.

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Outcome of one SMS send."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseNotificationService(ABC):
    """SMS provider used by the billing service and the health check."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short provider label for logs and /health."""

    @abstractmethod
    async def send_sms(self, to_phone: str, message: str) -> NotificationResult:
        """
        Text a message to a customer.

        Provider errors never raise; they come back as a failed result.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the provider can accept messages right now."""

    def _failure(self, error_message: str) -> NotificationResult:
        return NotificationResult(success=False, error_message=error_message, provider=self.provider_name)

    def _delivered(self, message_id: str) -> NotificationResult:
        return NotificationResult(success=True, message_id=message_id, provider=self.provider_name)
