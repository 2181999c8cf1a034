"""
Unit tests for bill generation and SMS delivery
"""

import pytest

from heypaytm.exceptions import InvalidPhoneNumber
from heypaytm.services.billing import BillingService, build_bill, format_bill_message
from heypaytm.services.notifications import (
    MockNotificationService,
    TwilioNotificationService,
    create_notification_service,
)


@pytest.fixture
def billing(notifier, storage):
    return BillingService(notifier, storage)


@pytest.fixture
def billed_session(session_manager):
    session_manager.create_session(5, "Asha", 2)
    session_manager.add_order_to_session(5, [{"name": "Naan", "quantity": 2, "price": 40}])
    return session_manager.request_payment(5, "987-654-3210")


class TestBuildBill:

    def test_amounts(self, billed_session):
        bill = build_bill(billed_session)

        assert bill.subtotal == 80
        assert bill.tax == 4
        assert bill.total == 84
        assert bill.phone_number == "9876543210"
        assert [(i.name, i.quantity) for i in bill.items] == [("Naan", 2)]

    def test_items_flattened_across_orders(self, session_manager):
        session_manager.create_session(3, "Ravi", 2)
        session_manager.add_order_to_session(3, [{"name": "Naan", "quantity": 1, "price": 45}])
        session_manager.add_order_to_session(3, [{"name": "Lassi", "quantity": 2, "price": 120}])
        session = session_manager.update_session_phone(3, "9876543210")

        bill = build_bill(session)
        assert [i.name for i in bill.items] == ["Naan", "Lassi"]
        assert bill.subtotal == 285
        assert bill.tax == 14

    def test_requires_phone(self, session_manager):
        session = session_manager.create_session(4, "Meera", 2)
        with pytest.raises(InvalidPhoneNumber):
            build_bill(session)

    def test_message_format(self, billed_session):
        message = format_bill_message(build_bill(billed_session))

        assert message == (
            "Hey Paytm - Bill for Table 5\n"
            f"Session: {billed_session.session_id}\n"
            "Customer: Asha\n"
            "\n"
            "Items:\n"
            "2x Naan - ₹80\n"
            "\n"
            "Subtotal: ₹80\n"
            "Tax (5%): ₹4\n"
            "Total: ₹84\n"
            "\n"
            "Thank you for dining with us!"
        )


class TestSendBill:
    """Test SMS delivery and the sent bill record"""

    @pytest.mark.asyncio
    async def test_send_records_bill(self, billing, notifier, billed_session):
        sent = await billing.send_bill(billing.build_bill(billed_session))

        assert sent is True
        assert notifier.sent_messages[0]["to"] == "9876543210"
        assert "Total: ₹84" in notifier.sent_messages[0]["body"]

        records = billing.get_sent_bills()
        assert len(records) == 1
        assert records[0].session_id == billed_session.session_id
        assert records[0].total == 84

    @pytest.mark.asyncio
    async def test_provider_failure(self, storage, billed_session):
        billing = BillingService(MockNotificationService(failure_rate=1, max_latency=0), storage)

        assert await billing.send_bill(billing.build_bill(billed_session)) is False
        assert billing.get_sent_bills() == []

    @pytest.mark.asyncio
    async def test_bad_phone_on_bill(self, billing, notifier, billed_session):
        bill = billing.build_bill(billed_session).model_copy(update={"phone_number": "12345"})

        assert await billing.send_bill(bill) is False
        assert notifier.sent_messages == []


class TestNotificationFactory:

    def test_development_uses_mock(self, settings):
        assert create_notification_service(settings).provider_name == "mock"

    @pytest.mark.asyncio
    async def test_mock_health(self, notifier):
        assert await notifier.health_check() is True

    @pytest.mark.asyncio
    async def test_twilio_without_credentials(self, settings):
        service = TwilioNotificationService(settings)

        result = await service.send_sms("9876543210", "Hello")

        assert result.success is False
        assert result.provider == "twilio"
        assert await service.health_check() is False

    def test_twilio_adds_country_code(self, settings):
        service = TwilioNotificationService(settings)
        assert service.to_e164("9876543210") == "+919876543210"
        assert service.to_e164("+15551234567") == "+15551234567"
