"""
Test configuration for pytest
"""

import os
import tempfile

import pytest

# Test environment variables (read once by the cached settings)
os.environ["ENV_MODE"] = "development"
os.environ["CELERY_ALWAYS_EAGER"] = "true"
os.environ["DATA_DIRECTORY"] = tempfile.mkdtemp(prefix="heypaytm-tests-")
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

from heypaytm.core.config import get_settings  # noqa: E402
from heypaytm.services.notifications.mock import MockNotificationService  # noqa: E402
from heypaytm.services.order_manager import OrderManager  # noqa: E402
from heypaytm.services.realtime import RealTimeSync  # noqa: E402
from heypaytm.services.session_manager import SessionManager  # noqa: E402
from heypaytm.storage import MemoryStorage  # noqa: E402


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def storage():
    """Fresh in-memory storage for each test"""
    return MemoryStorage()


@pytest.fixture
def realtime():
    return RealTimeSync()


@pytest.fixture
def session_manager(storage, realtime):
    return SessionManager(storage, realtime=realtime)


@pytest.fixture
def order_manager(realtime):
    return OrderManager(realtime=realtime)


@pytest.fixture
def notifier():
    """Mock SMS service that never fails and never sleeps"""
    return MockNotificationService(failure_rate=0, min_latency=0, max_latency=0)


@pytest.fixture
def container(settings, storage, notifier):
    from heypaytm.dependencies import build_container

    return build_container(settings, storage=storage, notification_service=notifier)


@pytest.fixture
def client(container):
    from fastapi.testclient import TestClient

    from heypaytm.main import create_app

    with TestClient(create_app(container)) as test_client:
        yield test_client
