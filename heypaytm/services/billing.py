"""
Bill Generation and SMS Delivery

Builds the bill for a table session (subtotal, tax, total) and texts it
to the phone number the customer left at the table. Every bill that goes
out is also kept under the `sent_bills` storage key for the counter.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone

from heypaytm.exceptions import InvalidPhoneNumber, StorageError
from heypaytm.schemas import BillData, LineItem, SentBill, TableSession
from heypaytm.services.analytics import bill_amounts
from heypaytm.services.notifications.base import BaseNotificationService
from heypaytm.storage import BaseStorage
from heypaytm.validation import normalize_phone_number

logger = logging.getLogger(__name__)


def build_bill(session: TableSession, tax_rate: float = 0.05) -> BillData:
    """
    Flatten all session orders into one bill.

    Raises:
        InvalidPhoneNumber: Session has no phone number to send the bill to
    """
    if not session.phone_number:
        raise InvalidPhoneNumber(f"Session {session.session_id} has no phone number for billing")

    items = [
        LineItem(name=item.name, quantity=item.quantity, price=item.price)
        for order in session.orders
        for item in order.items
    ]
    subtotal, tax, total = bill_amounts(session.total_amount, tax_rate)

    return BillData(
        session_id=session.session_id,
        table_number=session.table_number,
        customer_name=session.customer_name,
        items=items,
        subtotal=subtotal,
        tax=tax,
        total=total,
        phone_number=session.phone_number,
    )


def _amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def format_bill_message(bill: BillData, restaurant_name: str = "Hey Paytm", tax_rate: float = 0.05) -> str:
    items_list = "\n".join(
        f"{item.quantity}x {item.name} - ₹{_amount(item.price * item.quantity)}"
        for item in bill.items
    )

    return (
        f"{restaurant_name} - Bill for Table {bill.table_number}\n"
        f"Session: {bill.session_id}\n"
        f"Customer: {bill.customer_name}\n"
        f"\n"
        f"Items:\n"
        f"{items_list}\n"
        f"\n"
        f"Subtotal: ₹{_amount(bill.subtotal)}\n"
        f"Tax ({tax_rate * 100:g}%): ₹{_amount(bill.tax)}\n"
        f"Total: ₹{_amount(bill.total)}\n"
        f"\n"
        f"Thank you for dining with us!"
    )


class BillingService:
    """Sends bills over SMS and records them for the counter."""

    STORAGE_KEY = "sent_bills"

    def __init__(
        self,
        notification_service: BaseNotificationService,
        storage: BaseStorage,
        restaurant_name: str = "Hey Paytm",
        tax_rate: float = 0.05,
    ):
        self.notification_service = notification_service
        self.storage = storage
        self.restaurant_name = restaurant_name
        self.tax_rate = tax_rate

    def build_bill(self, session: TableSession) -> BillData:
        return build_bill(session, self.tax_rate)

    async def send_bill(self, bill: BillData) -> bool:
        """
        Text the bill to the customer.

        Returns:
            True once the SMS is accepted by the provider, False otherwise
        """
        try:
            bill = bill.model_copy(update={"phone_number": normalize_phone_number(bill.phone_number)})
        except InvalidPhoneNumber as e:
            logger.error(f"Error sending bill for {bill.session_id}: {e}")
            return False

        message = format_bill_message(bill, self.restaurant_name, self.tax_rate)
        result = await self.notification_service.send_sms(bill.phone_number, message)
        if not result.success:
            logger.error(f"Error sending bill for {bill.session_id}: {result.error_message}")
            return False

        sent = SentBill(**bill.model_dump(), sent_at=datetime.now(timezone.utc), message=message)
        try:
            bills = self.storage.load(self.STORAGE_KEY) or []
            bills.append(sent.to_storage())
            self.storage.save(self.STORAGE_KEY, bills)
        except StorageError as e:
            logger.error(f"Bill for {bill.session_id} sent but not recorded: {e}")

        logger.info(f"Bill for table {bill.table_number} sent to {bill.phone_number} (₹{bill.total})")
        return True

    def get_sent_bills(self) -> list[SentBill]:
        try:
            records = self.storage.load(self.STORAGE_KEY) or []
        except StorageError as e:
            logger.error(f"Error loading sent bills: {e}")
            return []
        return [SentBill.model_validate(record) for record in records]
