"""
Kitchen Order List

Flat list of orders placed from the voice interface, independent of table
sessions. Global subscribers receive a copy of the full list after every
change; there is no per-table filtering.

New orders are forwarded to the restaurant dashboard and status changes to
the customer. Both go through the real-time event bus when one is attached,
and are logged either way.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from heypaytm.exceptions import InvalidStatusTransition, ValidationError
from heypaytm.schemas import (
    Analytics,
    Order,
    OrderLineItem,
    OrderStatusEnum,
    OrderUpdate,
    status_rank,
)
from heypaytm.services.analytics import compute_analytics, order_total
from heypaytm.services.realtime import RealTimeSync, Unsubscribe
from heypaytm.validation import parse_order_status, validate_table_number

logger = logging.getLogger(__name__)

OrdersListener = Callable[[list[Order]], None]


class OrderManager:
    """In-memory order list with analytics for the dashboard."""

    CUSTOMER_MESSAGES = {
        OrderStatusEnum.PENDING: "Your order has been received and is being reviewed.",
        OrderStatusEnum.PREPARING: "Your order is being prepared by our kitchen team.",
        OrderStatusEnum.READY: "Your order is ready! Please wait for our staff to serve you.",
        OrderStatusEnum.SERVED: "Your order has been served. Enjoy your meal!",
    }

    def __init__(
        self,
        realtime: Optional[RealTimeSync] = None,
        max_tables: int = 24,
        enforce_status_progression: bool = True,
    ):
        self.realtime = realtime
        self.max_tables = max_tables
        self.enforce_status_progression = enforce_status_progression
        self._orders: list[Order] = []
        self._listeners: list[OrdersListener] = []

    def subscribe(self, callback: OrdersListener) -> Unsubscribe:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            self._listeners = [listener for listener in self._listeners if listener is not callback]

        return unsubscribe

    def _notify(self) -> None:
        snapshot = list(self._orders)
        for listener in list(self._listeners):
            try:
                listener(list(snapshot))
            except Exception:
                logger.exception("Order list listener failed")

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_order(
        self,
        table_number: int,
        items: Iterable[Union[OrderLineItem, dict[str, Any]]],
        customer_phone: Optional[str] = None,
    ) -> Order:
        """
        Record a new order from the voice interface and forward it to the restaurant.

        Raises:
            InvalidTableNumber: Table outside 1..max_tables
            ValidationError: No items, or an item fails validation
        """
        validate_table_number(table_number, self.max_tables)
        try:
            line_items = [
                item if isinstance(item, OrderLineItem) else OrderLineItem.model_validate(item)
                for item in items
            ]
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid order items: {e}") from e
        if not line_items:
            raise ValidationError("An order needs at least one item")

        order_id = int(time.time() * 1000)
        taken_ids = {o.id for o in self._orders}
        while order_id in taken_ids:
            order_id += 1

        order = Order(
            id=order_id,
            table_number=table_number,
            items=line_items,
            total=order_total(line_items),
            customer_phone=customer_phone,
        )

        self._orders.append(order)
        self._notify()
        self._send_to_restaurant(order)

        return order

    def update_order_status(self, order_id: int, status: Union[OrderStatusEnum, str]) -> Optional[Order]:
        """Dashboard status change; unknown ids are ignored."""
        new_status = parse_order_status(status)

        order = next((o for o in self._orders if o.id == order_id), None)
        if not order:
            return None

        if self.enforce_status_progression and status_rank(new_status) < status_rank(order.status):
            raise InvalidStatusTransition(order.status.value, new_status.value)

        order.status = new_status
        self._notify()
        self._notify_customer(order)

        return order

    def clear_served_orders(self) -> int:
        before = len(self._orders)
        self._orders = [o for o in self._orders if o.status != OrderStatusEnum.SERVED]
        self._notify()
        return before - len(self._orders)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_orders(self) -> list[Order]:
        return list(self._orders)

    def get_order(self, order_id: int) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    def get_orders_by_table(self, table_number: int) -> list[Order]:
        return [o for o in self._orders if o.table_number == table_number]

    def get_orders_by_status(self, status: Union[OrderStatusEnum, str]) -> list[Order]:
        wanted = parse_order_status(status)
        return [o for o in self._orders if o.status == wanted]

    def get_analytics(self) -> Analytics:
        return compute_analytics(self._orders)

    # =========================================================================
    # OUTBOUND
    # =========================================================================

    def _send_to_restaurant(self, order: Order) -> None:
        logger.info(
            f"[Order Manager] New order {order.id} sent to restaurant dashboard "
            f"(table {order.table_number}, ₹{order.total})"
        )
        if self.realtime:
            self.realtime.emit_new_order(order.to_storage())

    def _notify_customer(self, order: Order) -> None:
        logger.info(
            f"[Order Manager] Customer notification for Table {order.table_number}: "
            f"{order.status.value} - {self.CUSTOMER_MESSAGES[order.status]}"
        )
        if self.realtime:
            self.realtime.emit_order_update(OrderUpdate(
                id=order.id,
                status=order.status.value,
                table_number=order.table_number,
                customer_phone=order.customer_phone,
            ))
