"""
Application wiring.

The stores are built once per application (in the FastAPI lifespan) and
handed to route handlers through Depends; nothing lives in module globals.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from heypaytm.core.config import Settings, get_settings
from heypaytm.services.billing import BillingService
from heypaytm.services.notifications import BaseNotificationService, create_notification_service
from heypaytm.services.order_manager import OrderManager
from heypaytm.services.realtime import RealTimeSync
from heypaytm.services.session_manager import SessionManager
from heypaytm.services.voice import VoiceOrderHandler
from heypaytm.storage import BaseStorage, create_storage

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    storage: BaseStorage
    realtime: RealTimeSync
    session_manager: SessionManager
    order_manager: OrderManager
    notification_service: BaseNotificationService
    billing: BillingService
    voice: VoiceOrderHandler


def build_container(
    settings: Optional[Settings] = None,
    storage: Optional[BaseStorage] = None,
    notification_service: Optional[BaseNotificationService] = None,
) -> ServiceContainer:
    """Construct every store and service, sharing one event bus and one storage."""
    settings = settings or get_settings()
    storage = storage or create_storage(settings)
    notification_service = notification_service or create_notification_service(settings)

    realtime = RealTimeSync()
    session_manager = SessionManager.from_settings(storage, settings, realtime=realtime)
    order_manager = OrderManager(
        realtime=realtime,
        max_tables=settings.max_tables,
        enforce_status_progression=settings.enforce_status_progression,
    )
    billing = BillingService(
        notification_service,
        storage,
        restaurant_name=settings.restaurant_name,
        tax_rate=settings.tax_rate,
    )
    voice = VoiceOrderHandler(session_manager)

    logger.info(
        f"Services ready (storage={storage.backend_name}, "
        f"notifications={notification_service.provider_name})"
    )

    return ServiceContainer(
        settings=settings,
        storage=storage,
        realtime=realtime,
        session_manager=session_manager,
        order_manager=order_manager,
        notification_service=notification_service,
        billing=billing,
        voice=voice,
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_session_manager(container: ServiceContainer = Depends(get_container)) -> SessionManager:
    return container.session_manager


def get_order_manager(container: ServiceContainer = Depends(get_container)) -> OrderManager:
    return container.order_manager


def get_realtime(container: ServiceContainer = Depends(get_container)) -> RealTimeSync:
    return container.realtime


def get_billing(container: ServiceContainer = Depends(get_container)) -> BillingService:
    return container.billing


def get_voice_handler(container: ServiceContainer = Depends(get_container)) -> VoiceOrderHandler:
    return container.voice
