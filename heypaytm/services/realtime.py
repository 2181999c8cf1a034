"""
Real-Time Event Bus

In-process fan-out between the staff dashboard and the customer table page.
Four independent channels:
    - order updates (dashboard -> kitchen views)
    - customer notifications (messages shown on the table page)
    - dashboard updates (new orders)
    - cash payment requests (table page -> counter)

Delivery is synchronous: every emit calls each subscriber in registration
order before returning. Subscribers are read from a snapshot, so a callback
that unsubscribes itself (or another one) does not cause skipped deliveries.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from typing import Any, Callable, Union

from heypaytm.schemas import (
    CashPaymentRequest,
    CashPaymentRequestCreate,
    CustomerNotification,
    NotificationTypeEnum,
    OrderUpdate,
)

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class _Channel:
    """Ordered subscriber list for one event type."""

    def __init__(self, name: str):
        self.name = name
        self._callbacks: list[Callable[[Any], None]] = []

    def subscribe(self, callback: Callable[[Any], None]) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            self._callbacks = [cb for cb in self._callbacks if cb is not callback]

        return unsubscribe

    def publish(self, payload: Any) -> int:
        delivered = 0
        for callback in list(self._callbacks):
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber failed on '{self.name}' channel")
        return delivered

    def __len__(self) -> int:
        return len(self._callbacks)


class RealTimeSync:
    """
    Observer hub connecting dashboard, kitchen and customer views.

    Each on_* method registers a callback and returns a function that removes it.
    """

    STATUS_MESSAGES = {
        "pending": "Your order has been received and is pending confirmation.",
        "preparing": "Great! Your order is now being prepared by our kitchen.",
        "ready": "Your order is ready! Please collect it from the counter.",
        "served": "Order completed. Thank you for dining with us!",
    }
    DEFAULT_STATUS_MESSAGE = "Order status updated."
    PAYMENT_CONFIRMED_MESSAGE = "Payment confirmed! Your order is being prepared."

    def __init__(self):
        self._order_updates = _Channel("order_update")
        self._customer_notifications = _Channel("customer_notification")
        self._dashboard_updates = _Channel("dashboard_update")
        self._cash_payment_requests = _Channel("cash_payment_request")

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def on_order_update(self, callback: Callable[[OrderUpdate], None]) -> Unsubscribe:
        return self._order_updates.subscribe(callback)

    def on_customer_notification(
        self, callback: Callable[[CustomerNotification], None]
    ) -> Unsubscribe:
        return self._customer_notifications.subscribe(callback)

    def on_dashboard_update(self, callback: Callable[[list[dict[str, Any]]], None]) -> Unsubscribe:
        return self._dashboard_updates.subscribe(callback)

    def on_cash_payment_request(
        self, callback: Callable[[CashPaymentRequest], None]
    ) -> Unsubscribe:
        return self._cash_payment_requests.subscribe(callback)

    # =========================================================================
    # EMITTERS
    # =========================================================================

    def emit_order_update(self, update: OrderUpdate) -> CustomerNotification:
        """Push a status change to the dashboard, then tell the customer."""
        self._order_updates.publish(update)

        notification = CustomerNotification(
            order_id=update.id,
            message=self.get_status_message(update.status),
            type=NotificationTypeEnum.STATUS_UPDATE,
            table_number=update.table_number,
        )
        self._customer_notifications.publish(notification)
        logger.debug(f"Order {update.id} (table {update.table_number}) -> {update.status}")
        return notification

    def emit_new_order(self, order: dict[str, Any]) -> None:
        """Announce an order placed from a table to dashboard subscribers."""
        self._dashboard_updates.publish([order])

    def emit_cash_payment_request(
        self, payment: Union[CashPaymentRequestCreate, dict[str, Any]]
    ) -> CashPaymentRequest:
        if isinstance(payment, dict):
            payment = CashPaymentRequestCreate.model_validate(payment)
        request = CashPaymentRequest(
            **payment.model_dump(),
            id=int(time.time() * 1000),
        )
        self._cash_payment_requests.publish(request)
        logger.info(f"Cash payment requested at table {request.table_number}: ₹{request.total}")
        return request

    def emit_payment_confirmation(
        self,
        order_id: Union[int, str],
        customer_phone: str,
        table_number: int,
    ) -> CustomerNotification:
        notification = CustomerNotification(
            order_id=order_id,
            message=self.PAYMENT_CONFIRMED_MESSAGE,
            type=NotificationTypeEnum.PAYMENT_CONFIRMED,
            table_number=table_number,
        )
        self._customer_notifications.publish(notification)
        logger.info(f"Payment confirmed for order {order_id} (table {table_number}, {customer_phone})")
        return notification

    # =========================================================================
    # HELPERS
    # =========================================================================

    @classmethod
    def get_status_message(cls, status: str) -> str:
        return cls.STATUS_MESSAGES.get(str(getattr(status, "value", status)), cls.DEFAULT_STATUS_MESSAGE)

    def subscriber_counts(self) -> dict[str, int]:
        return {
            channel.name: len(channel)
            for channel in (
                self._order_updates,
                self._customer_notifications,
                self._dashboard_updates,
                self._cash_payment_requests,
            )
        }
