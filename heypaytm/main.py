"""
FastAPI Application Entry Point

Hey Paytm Table Service - session and order state for the staff dashboard
and the customer table page.

Endpoints:
    - /api/sessions: Table sessions (seat, order, bill, complete, clear)
    - /api/orders: Kitchen order list and analytics
    - /api/cash-payments: Cash payment requests from tables
    - /api/voice/{table}: "Hey Paytm" voice commands
    - /api/menu: Menu for the table page
    - GET /health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import redis
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from kombu.exceptions import OperationalError

from heypaytm.core.config import get_settings, setup_logging
from heypaytm.dependencies import (
    ServiceContainer,
    build_container,
    get_billing,
    get_container,
    get_order_manager,
    get_realtime,
    get_session_manager,
    get_voice_handler,
)
from heypaytm.exceptions import SessionConflictError, StorageError, ValidationError
from heypaytm.menu import DEFAULT_MENU, menu_adapter
from heypaytm.schemas import (
    Analytics,
    BillSendResponse,
    CashPaymentRequest,
    CashPaymentRequestCreate,
    ErrorResponse,
    HealthResponse,
    LegacyOrderCreate,
    Order,
    OrderStatusEnum,
    PaymentRequestCreate,
    PhoneUpdate,
    SessionCreate,
    SessionOrder,
    SessionOrderCreate,
    SessionStats,
    StatusUpdate,
    TableSession,
    VoiceCommandRequest,
    VoiceResponse,
)
from heypaytm.services.billing import BillingService
from heypaytm.services.order_manager import OrderManager
from heypaytm.services.realtime import RealTimeSync
from heypaytm.services.session_manager import SessionManager
from heypaytm.services.voice import VoiceOrderHandler
from heypaytm.tasks import export_bill_to_excel, export_session_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _not_found(table_number: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=f"No active session for table {table_number}",
    )


def _queue_export(task, payload: dict[str, Any], label: str) -> None:
    """Queue an Excel export; a missing broker must not fail the request."""
    try:
        task.delay(payload)
    except OperationalError as e:
        logger.warning(f"Could not queue export for {label}: {e}")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@router.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🙏 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check storage
    storage_status = "healthy"
    try:
        container.storage.load(SessionManager.STORAGE_KEY)
    except StorageError as e:
        storage_status = f"unhealthy: {str(e)}"
        logger.error(f"Storage health check failed: {e}")

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(
            container.settings.redis_url, socket_timeout=2, socket_connect_timeout=2
        )
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    # Check notification service
    notifications_ok = await container.notification_service.health_check()
    notification_status = "healthy" if notifications_ok else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [storage_status, redis_status, notification_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        storage=storage_status,
        redis=redis_status,
        notification_service=notification_status,
        active_sessions=len(container.session_manager.get_active_sessions()),
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# TABLE SESSION ENDPOINTS
# =============================================================================

@router.post(
    "/api/sessions",
    response_model=TableSession,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Sessions"],
    summary="Seat a party (open a table session)",
)
async def create_session(
    payload: SessionCreate,
    sessions: SessionManager = Depends(get_session_manager),
) -> TableSession:
    return sessions.create_session(payload.table_number, payload.customer_name, payload.guest_count)


@router.get("/api/sessions", response_model=list[TableSession], tags=["Sessions"])
async def list_sessions(
    sessions: SessionManager = Depends(get_session_manager),
) -> list[TableSession]:
    """All stored sessions, completed ones included."""
    return sessions.get_all_sessions()


@router.get("/api/sessions/active", response_model=list[TableSession], tags=["Sessions"])
async def list_active_sessions(
    sessions: SessionManager = Depends(get_session_manager),
) -> list[TableSession]:
    return sessions.get_active_sessions()


@router.get("/api/sessions/{table_number}", response_model=TableSession, tags=["Sessions"])
async def get_session(
    table_number: int,
    sessions: SessionManager = Depends(get_session_manager),
) -> TableSession:
    session = sessions.get_session(table_number)
    if not session:
        raise _not_found(table_number)
    return session


@router.get("/api/sessions/{table_number}/stats", response_model=SessionStats, tags=["Sessions"])
async def get_session_stats(
    table_number: int,
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionStats:
    stats = sessions.get_session_stats(table_number)
    if not stats:
        raise _not_found(table_number)
    return stats


@router.post(
    "/api/sessions/{table_number}/orders",
    response_model=SessionOrder,
    status_code=status.HTTP_201_CREATED,
    tags=["Sessions"],
)
async def add_session_order(
    table_number: int,
    payload: SessionOrderCreate,
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionOrder:
    order = sessions.add_order_to_session(table_number, payload.items)
    if not order:
        raise _not_found(table_number)
    return order


@router.patch(
    "/api/sessions/{table_number}/orders/{order_id}",
    response_model=SessionOrder,
    tags=["Sessions"],
)
async def update_session_order_status(
    table_number: int,
    order_id: str,
    payload: StatusUpdate,
    sessions: SessionManager = Depends(get_session_manager),
) -> SessionOrder:
    order = sessions.update_order_status(table_number, order_id, payload.status)
    if not order:
        raise HTTPException(
            status_code=404,
            detail=f"Order {order_id} not found at table {table_number}",
        )
    return order


@router.post(
    "/api/sessions/{table_number}/payment-request",
    response_model=TableSession,
    tags=["Sessions"],
)
async def request_payment(
    table_number: int,
    payload: Optional[PaymentRequestCreate] = None,
    sessions: SessionManager = Depends(get_session_manager),
) -> TableSession:
    phone = payload.phone_number if payload else None
    session = sessions.request_payment(table_number, phone)
    if not session:
        raise _not_found(table_number)
    return session


@router.put("/api/sessions/{table_number}/phone", response_model=TableSession, tags=["Sessions"])
async def update_session_phone(
    table_number: int,
    payload: PhoneUpdate,
    sessions: SessionManager = Depends(get_session_manager),
) -> TableSession:
    session = sessions.update_session_phone(table_number, payload.phone_number)
    if not session:
        raise _not_found(table_number)
    return session


@router.post(
    "/api/sessions/{table_number}/complete",
    response_model=TableSession,
    tags=["Sessions"],
)
async def complete_session(
    table_number: int,
    sessions: SessionManager = Depends(get_session_manager),
) -> TableSession:
    """Close the session after payment and queue its Excel export."""
    session = sessions.complete_session(table_number)
    if not session:
        raise _not_found(table_number)

    _queue_export(export_session_to_excel, session.to_storage(), session.session_id)
    return session


@router.delete("/api/sessions/{table_number}", tags=["Sessions"])
async def end_session(
    table_number: int,
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """Clear the table without completing the session."""
    removed = sessions.end_session(table_number)
    return {"success": True, "tableNumber": table_number, "removed": removed}


@router.post(
    "/api/sessions/{table_number}/bill",
    response_model=BillSendResponse,
    responses={502: {"model": ErrorResponse}},
    tags=["Sessions"],
    summary="Text the bill to the customer",
)
async def send_bill(
    table_number: int,
    sessions: SessionManager = Depends(get_session_manager),
    billing: BillingService = Depends(get_billing),
) -> BillSendResponse:
    session = sessions.get_session(table_number)
    if not session:
        raise _not_found(table_number)

    bill = billing.build_bill(session)
    if not await billing.send_bill(bill):
        raise HTTPException(status_code=502, detail="Failed to send bill")

    sent_at = datetime.now(timezone.utc).isoformat()
    _queue_export(export_bill_to_excel, {**bill.to_storage(), "sentAt": sent_at}, bill.session_id)
    return BillSendResponse(success=True, message=f"Bill sent to {bill.phone_number}", bill=bill)


# =============================================================================
# ORDER LIST ENDPOINTS
# =============================================================================

@router.post(
    "/api/orders",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    tags=["Orders"],
)
async def create_order(
    payload: LegacyOrderCreate,
    orders: OrderManager = Depends(get_order_manager),
) -> Order:
    return orders.add_order(payload.table_number, payload.items, payload.customer_phone)


@router.get("/api/orders", response_model=list[Order], tags=["Orders"])
async def list_orders(
    table_number: Optional[int] = Query(None, alias="tableNumber"),
    order_status: Optional[OrderStatusEnum] = Query(None, alias="status"),
    orders: OrderManager = Depends(get_order_manager),
) -> list[Order]:
    result = orders.get_orders() if table_number is None else orders.get_orders_by_table(table_number)
    if order_status is not None:
        result = [o for o in result if o.status == order_status]
    return result


@router.patch("/api/orders/{order_id}", response_model=Order, tags=["Orders"])
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    orders: OrderManager = Depends(get_order_manager),
) -> Order:
    order = orders.update_order_status(order_id, payload.status)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order #{order_id} not found")
    return order


@router.delete("/api/orders/served", tags=["Orders"])
async def clear_served_orders(
    orders: OrderManager = Depends(get_order_manager),
) -> dict[str, Any]:
    return {"success": True, "removed": orders.clear_served_orders()}


@router.get("/api/analytics", response_model=Analytics, tags=["Orders"])
async def analytics(
    orders: OrderManager = Depends(get_order_manager),
) -> Analytics:
    return orders.get_analytics()


# =============================================================================
# TABLE PAGE ENDPOINTS
# =============================================================================

@router.post("/api/cash-payments", response_model=CashPaymentRequest, tags=["Payments"])
async def request_cash_payment(
    payload: CashPaymentRequestCreate,
    realtime: RealTimeSync = Depends(get_realtime),
) -> CashPaymentRequest:
    """Customer asks for a staff member to collect cash at the table."""
    return realtime.emit_cash_payment_request(payload)


@router.post("/api/voice/{table_number}", response_model=VoiceResponse, tags=["Voice"])
async def voice_command(
    table_number: int,
    payload: VoiceCommandRequest,
    voice: VoiceOrderHandler = Depends(get_voice_handler),
) -> VoiceResponse:
    return voice.process(table_number, payload.transcript)


@router.get("/api/menu", tags=["Menu"])
async def get_menu() -> list[dict[str, Any]]:
    return menu_adapter.dump_python(DEFAULT_MENU, mode="json", by_alias=True)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the FastAPI app; tests pass a container with in-memory storage."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info("=" * 60)

        app.state.container = container or build_container(settings)

        if settings.use_real_services:
            missing = settings.validate_production_config()
            if missing:
                logger.warning(f"⚠️ Missing production config: {missing}")

        logger.info("✅ Application ready!")

        yield  # Application runs

        logger.info("Shutting down...")

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Table sessions, kitchen orders and real-time notifications "
            "for Hey Paytm voice/QR restaurant ordering."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        status_code = 409 if isinstance(exc, SessionConflictError) else 400
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": type(exc).__name__, "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal Server Error",
                "detail": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return app


app = create_app()
