"""
Table Session Manager

Owns the dining sessions of the restaurant, one open session per table:
    - create on table assignment
    - add orders, move orders through the kitchen workflow
    - request payment (bill), attach the customer's phone
    - complete after payment, or end to clear the table

The whole session list is persisted under a single storage key on every
mutation. Storage failures are logged and the call carries on with the
in-memory state it already has; nothing is retried. A list that could not
be read in full is never written back.

Subscribers registered for a table number are called synchronously after
every mutation affecting that table, with the updated session, or with
None once the session is completed or ended.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from heypaytm.core.config import Settings
from heypaytm.exceptions import (
    InvalidStatusTransition,
    SessionConflictError,
    SessionStateError,
    StorageError,
    ValidationError,
)
from heypaytm.schemas import (
    LineItem,
    OrderStatusEnum,
    OrderUpdate,
    SessionOrder,
    SessionStats,
    SessionStatusEnum,
    TableSession,
    status_rank,
)
from heypaytm.services.analytics import order_total, session_stats
from heypaytm.services.realtime import RealTimeSync, Unsubscribe
from heypaytm.storage import BaseStorage
from heypaytm.validation import normalize_phone_number, parse_order_status, validate_table_number

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[TableSession]], None]

_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """Per-table dining sessions backed by local persistent storage."""

    STORAGE_KEY = "table_sessions"

    def __init__(
        self,
        storage: BaseStorage,
        realtime: Optional[RealTimeSync] = None,
        max_tables: int = 24,
        enforce_status_progression: bool = True,
    ):
        self.storage = storage
        self.realtime = realtime
        self.max_tables = max_tables
        self.enforce_status_progression = enforce_status_progression
        self._listeners: dict[int, list[SessionListener]] = {}

    @classmethod
    def from_settings(
        cls,
        storage: BaseStorage,
        settings: Settings,
        realtime: Optional[RealTimeSync] = None,
    ) -> "SessionManager":
        return cls(
            storage,
            realtime=realtime,
            max_tables=settings.max_tables,
            enforce_status_progression=settings.enforce_status_progression,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create_session(self, table_number: int, customer_name: str, guest_count: int) -> TableSession:
        """
        Open a session when a party is seated.

        Raises:
            InvalidTableNumber: Table outside 1..max_tables
            ValidationError: Guest count below 1 or empty customer name
            SessionConflictError: Table already has an open session
        """
        validate_table_number(table_number, self.max_tables)
        if guest_count < 1:
            raise ValidationError("Guest count must be at least 1")
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")

        sessions, loaded = self._load_sessions()
        existing = self._find_open(sessions, table_number)
        if existing:
            raise SessionConflictError(table_number, existing.session_id)

        taken_ids = {s.session_id for s in sessions}
        stamp = _now_ms()
        session_id = f"T{table_number}-{to_base36(stamp)}"
        while session_id in taken_ids:
            stamp += 1
            session_id = f"T{table_number}-{to_base36(stamp)}"

        session = TableSession(
            session_id=session_id,
            table_number=table_number,
            customer_name=customer_name.strip(),
            guest_count=guest_count,
        )

        sessions.append(session)
        self._save_sessions(sessions, loaded)
        logger.info(f"Session {session_id} opened for table {table_number} ({guest_count} guests)")
        self._notify_listeners(table_number, session)

        return session

    def get_session(self, table_number: int) -> Optional[TableSession]:
        """Open (not completed) session for the table, if any."""
        return self._find_open(self.get_all_sessions(), table_number)

    def add_order_to_session(
        self,
        table_number: int,
        items: Iterable[Union[LineItem, dict[str, Any]]],
    ) -> Optional[SessionOrder]:
        """
        Append an order to the table's open session.

        Returns:
            The new order, or None when the table has no open session
            (storage is left untouched in that case)
        """
        line_items = self._coerce_items(items)

        sessions, loaded = self._load_sessions()
        session = self._find_open(sessions, table_number)
        if not session:
            logger.debug(f"No open session for table {table_number}, order dropped")
            return None
        if session.status == SessionStatusEnum.PAYMENT_REQUESTED:
            raise SessionStateError(
                f"Bill already requested for table {table_number}; no new orders accepted"
            )

        taken_ids = {o.id for o in session.orders}
        stamp = _now_ms()
        order_id = f"ORD-{stamp}"
        while order_id in taken_ids:
            stamp += 1
            order_id = f"ORD-{stamp}"

        order = SessionOrder(id=order_id, items=line_items, total=order_total(line_items))
        session.orders.append(order)
        session.total_amount = sum(o.total for o in session.orders)

        self._save_sessions(sessions, loaded)
        logger.info(f"Order {order.id} added to {session.session_id}: ₹{order.total}")
        self._notify_listeners(table_number, session)

        if self.realtime:
            self.realtime.emit_new_order({
                "id": order.id,
                "tableNumber": table_number,
                "items": [item.to_storage() for item in order.items],
                "total": order.total,
                "timestamp": order.timestamp.isoformat(),
                "customerName": session.customer_name,
                "sessionId": session.session_id,
            })

        return order

    def update_order_status(
        self,
        table_number: int,
        order_id: str,
        status: Union[OrderStatusEnum, str],
    ) -> Optional[SessionOrder]:
        """
        Move an order along pending -> preparing -> ready -> served.

        Unknown tables and order ids are ignored (returns None).

        Raises:
            InvalidStatusTransition: Status would move backward while
                progression is enforced
        """
        new_status = parse_order_status(status)

        sessions, loaded = self._load_sessions()
        session = self._find_open(sessions, table_number)
        if not session:
            return None

        order = next((o for o in session.orders if o.id == order_id), None)
        if not order:
            logger.debug(f"Order {order_id} not found in {session.session_id}")
            return None

        if self.enforce_status_progression and status_rank(new_status) < status_rank(order.status):
            raise InvalidStatusTransition(order.status.value, new_status.value)

        order.status = new_status
        self._save_sessions(sessions, loaded)
        logger.info(f"Order {order_id} at table {table_number} -> {new_status.value}")
        self._notify_listeners(table_number, session)

        if self.realtime:
            self.realtime.emit_order_update(OrderUpdate(
                id=order.id,
                status=new_status.value,
                table_number=table_number,
                customer_phone=session.phone_number,
            ))

        return order

    def request_payment(self, table_number: int, phone_number: Optional[str] = None) -> Optional[TableSession]:
        """
        Generate the bill: the session moves to payment_requested.

        Raises:
            InvalidPhoneNumber: Phone given but not exactly 10 digits
        """
        phone = normalize_phone_number(phone_number) if phone_number else None

        sessions, loaded = self._load_sessions()
        session = self._find_open(sessions, table_number)
        if not session:
            return None

        session.status = SessionStatusEnum.PAYMENT_REQUESTED
        if phone:
            session.phone_number = phone

        self._save_sessions(sessions, loaded)
        logger.info(f"Payment requested for {session.session_id}: ₹{session.total_amount}")
        self._notify_listeners(table_number, session)

        return session

    def update_session_phone(self, table_number: int, phone_number: str) -> Optional[TableSession]:
        """
        Attach the customer's phone to the open session.

        Raises:
            InvalidPhoneNumber: Phone not exactly 10 digits
        """
        phone = normalize_phone_number(phone_number)

        sessions, loaded = self._load_sessions()
        session = self._find_open(sessions, table_number)
        if not session:
            return None

        session.phone_number = phone
        self._save_sessions(sessions, loaded)
        self._notify_listeners(table_number, session)

        return session

    def complete_session(self, table_number: int) -> Optional[TableSession]:
        """Mark the session paid and done; it stays in storage as history."""
        sessions, loaded = self._load_sessions()
        session = self._find_open(sessions, table_number)
        if not session:
            return None

        session.status = SessionStatusEnum.COMPLETED
        self._save_sessions(sessions, loaded)
        logger.info(f"Session {session.session_id} completed (₹{session.total_amount})")
        self._notify_listeners(table_number, None)

        return session

    def end_session(self, table_number: int) -> int:
        """
        Clear the table: drop every non-completed session for it.

        Returns:
            Number of sessions removed
        """
        sessions, loaded = self._load_sessions()
        kept = [s for s in sessions if s.table_number != table_number or not s.is_open]
        removed = len(sessions) - len(kept)

        self._save_sessions(kept, loaded)
        logger.info(f"Table {table_number} cleared ({removed} open session(s) removed)")
        self._notify_listeners(table_number, None)

        return removed

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_all_sessions(self) -> list[TableSession]:
        """
        Every stored session, completed ones included.

        Unreadable storage reads as empty; unreadable records are skipped.
        """
        sessions, _ = self._load_sessions()
        return sessions

    def get_active_sessions(self) -> list[TableSession]:
        return [s for s in self.get_all_sessions() if s.is_open]

    def get_session_stats(self, table_number: int) -> Optional[SessionStats]:
        session = self.get_session(table_number)
        if not session:
            return None
        return session_stats(session)

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, table_number: int, callback: SessionListener) -> Unsubscribe:
        """Listen to one table; returns a function that stops listening."""
        self._listeners.setdefault(table_number, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._listeners.get(table_number)
            if callbacks is not None:
                self._listeners[table_number] = [cb for cb in callbacks if cb is not callback]

        return unsubscribe

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _find_open(sessions: list[TableSession], table_number: int) -> Optional[TableSession]:
        return next(
            (s for s in sessions if s.table_number == table_number and s.is_open),
            None,
        )

    @staticmethod
    def _coerce_items(items: Iterable[Union[LineItem, dict[str, Any]]]) -> list[LineItem]:
        try:
            line_items = [
                LineItem.model_validate(item.model_dump() if isinstance(item, LineItem) else item)
                for item in items
            ]
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid order items: {e}") from e
        if not line_items:
            raise ValidationError("An order needs at least one item")
        return line_items

    def _load_sessions(self) -> tuple[list[TableSession], bool]:
        """
        Read the stored session list.

        Returns:
            (sessions, loaded); loaded is False when the document or any
            record in it could not be read, and the list must not be
            written back over storage
        """
        try:
            data = self.storage.load(self.STORAGE_KEY)
        except StorageError as e:
            logger.error(f"[SessionManager] Error loading sessions: {e}")
            return [], False

        if not data:
            return [], True
        if not isinstance(data, list):
            logger.error(f"[SessionManager] Session list has unexpected type {type(data).__name__}")
            return [], False

        sessions = []
        loaded = True
        for index, record in enumerate(data):
            try:
                sessions.append(TableSession.model_validate(record))
            except (SchemaValidationError, TypeError) as e:
                logger.error(f"[SessionManager] Skipping unreadable session record {index}: {e}")
                loaded = False
        return sessions, loaded

    def _save_sessions(self, sessions: list[TableSession], loaded: bool = True) -> None:
        if not loaded:
            logger.warning("[SessionManager] Stored sessions unreadable, change kept in memory only")
            return
        try:
            self.storage.save(self.STORAGE_KEY, [s.to_storage() for s in sessions])
        except StorageError as e:
            logger.error(f"[SessionManager] Error saving sessions: {e}")

    def _notify_listeners(self, table_number: int, session: Optional[TableSession]) -> None:
        for callback in list(self._listeners.get(table_number, [])):
            try:
                callback(session)
            except Exception:
                logger.exception(f"Session listener for table {table_number} failed")
