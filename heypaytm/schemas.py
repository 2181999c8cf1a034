"""
Pydantic Schemas for Sessions, Orders and Real-Time Events

Every record serializes with camelCase keys, matching the layout the
dashboard and the table page already read from local storage:
- Table sessions and their orders
- Legacy flat orders and analytics
- Real-time order updates, customer notifications, cash payment requests
- Bills sent over SMS

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model reading and writing camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys and ISO dates."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# ENUMS
# =============================================================================

class OrderStatusEnum(str, Enum):
    """Kitchen workflow shared by session orders and legacy orders."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"


ORDER_STATUS_SEQUENCE = (
    OrderStatusEnum.PENDING,
    OrderStatusEnum.PREPARING,
    OrderStatusEnum.READY,
    OrderStatusEnum.SERVED,
)


def status_rank(status: OrderStatusEnum) -> int:
    """Position of a status along pending -> preparing -> ready -> served."""
    return ORDER_STATUS_SEQUENCE.index(OrderStatusEnum(status))


class SessionStatusEnum(str, Enum):
    ACTIVE = "active"
    PAYMENT_REQUESTED = "payment_requested"
    COMPLETED = "completed"


class NotificationTypeEnum(str, Enum):
    STATUS_UPDATE = "status_update"
    PAYMENT_CONFIRMED = "payment_confirmed"
    ORDER_READY = "order_ready"


UpdateStatus = Literal["pending", "preparing", "ready", "served", "cancelled"]


# =============================================================================
# TABLE SESSIONS
# =============================================================================

class LineItem(CamelModel):
    """Single dish within a session order."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Butter Naan"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    price: float = Field(..., ge=0, examples=[45])

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class SessionOrder(CamelModel):
    """One order placed during a dining session."""
    id: str
    items: List[LineItem]
    total: float
    status: OrderStatusEnum = OrderStatusEnum.PENDING
    timestamp: datetime = Field(default_factory=utc_now)


class TableSession(CamelModel):
    """A dining party's occupancy of a table, bundling all of its orders."""
    session_id: str
    table_number: int
    customer_name: str
    guest_count: int
    start_time: datetime = Field(default_factory=utc_now)
    orders: List[SessionOrder] = Field(default_factory=list)
    total_amount: float = 0
    status: SessionStatusEnum = SessionStatusEnum.ACTIVE
    phone_number: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def accept_billing_alias(cls, v: Any) -> Any:
        # The table page used to write "billing" for the same state
        if v == "billing":
            return SessionStatusEnum.PAYMENT_REQUESTED
        return v

    @property
    def is_open(self) -> bool:
        return self.status != SessionStatusEnum.COMPLETED


class SessionStats(CamelModel):
    order_count: int
    total_amount: float
    duration: str


# =============================================================================
# LEGACY ORDERS
# =============================================================================

class OrderLineItem(CamelModel):
    """Item as produced by the voice interface (`item` instead of `name`)."""
    id: Optional[int] = None
    item: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1, le=99)
    price: float = Field(..., ge=0)


class Order(CamelModel):
    """Flat order record of the kitchen order list."""
    id: int
    table_number: int
    items: List[OrderLineItem]
    total: float
    status: OrderStatusEnum = OrderStatusEnum.PENDING
    timestamp: datetime = Field(default_factory=utc_now)
    customer_phone: Optional[str] = None


class PopularItem(CamelModel):
    name: str
    count: int


class Analytics(CamelModel):
    total_revenue: float
    total_orders: int
    avg_order_value: int
    status_counts: dict[str, int]
    popular_items: List[PopularItem]


# =============================================================================
# REAL-TIME EVENTS
# =============================================================================

class OrderUpdate(CamelModel):
    id: Union[int, str]
    status: UpdateStatus
    timestamp: datetime = Field(default_factory=utc_now)
    table_number: int
    customer_phone: Optional[str] = None


class CustomerNotification(CamelModel):
    order_id: Union[int, str]
    message: str
    type: NotificationTypeEnum
    timestamp: datetime = Field(default_factory=utc_now)
    table_number: int


class CashPaymentRequestCreate(CamelModel):
    """Cash payment request as sent from the table page."""
    table_number: int
    customer_phone: str
    total: float = Field(..., ge=0)
    items: List[LineItem] = Field(default_factory=list)


class CashPaymentRequest(CashPaymentRequestCreate):
    id: int
    timestamp: datetime = Field(default_factory=utc_now)


# =============================================================================
# BILLING
# =============================================================================

class BillData(CamelModel):
    session_id: str
    table_number: int
    customer_name: str
    items: List[LineItem]
    subtotal: float
    tax: float
    total: float
    phone_number: str


class SentBill(BillData):
    sent_at: datetime
    message: str


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class SessionCreate(CamelModel):
    """Table assignment from the staff dashboard."""
    table_number: int = Field(..., examples=[5])
    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Asha"])
    guest_count: int = Field(..., ge=1, le=50, examples=[2])


class SessionOrderCreate(CamelModel):
    items: List[LineItem] = Field(..., min_length=1)


class LegacyOrderCreate(CamelModel):
    table_number: int
    items: List[OrderLineItem] = Field(..., min_length=1)
    customer_phone: Optional[str] = None


class StatusUpdate(CamelModel):
    status: OrderStatusEnum


class PaymentRequestCreate(CamelModel):
    phone_number: Optional[str] = None


class PhoneUpdate(CamelModel):
    phone_number: str = Field(..., examples=["987-654-3210"])


class VoiceCommandRequest(CamelModel):
    transcript: str = Field(..., min_length=1, examples=["Hey Paytm, order 2 butter naan"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class VoiceResponse(CamelModel):
    """Spoken reply plus whatever the command changed."""
    message: str
    added_item: Optional[LineItem] = None
    submitted_order: Optional[SessionOrder] = None
    cart: List[LineItem] = Field(default_factory=list)


class BillSendResponse(CamelModel):
    success: bool
    message: str
    bill: Optional[BillData] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    redis: str
    notification_service: str
    active_sessions: int
    timestamp: datetime
