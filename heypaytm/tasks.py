"""
Celery Tasks
Excel exports of completed table sessions and of bills sent over SMS.
Both are queued by the API and retried by the worker on unexpected errors.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable

from heypaytm.celery_worker import celery_app
from heypaytm.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)

EXPORT_TASK_OPTIONS = {
    "bind": True,
    "max_retries": 3,
    "default_retry_delay": 5,
    "autoretry_for": (Exception,),
    "retry_backoff": True,
}


def _timed_export(
    task_id: str,
    label: str,
    export: Callable[[dict[str, Any]], dict[str, Any]],
    record: dict[str, Any],
) -> dict[str, Any]:
    started = time.time()
    result = export(record)
    elapsed = round(time.time() - started, 3)

    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: {label} exported in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: {label} not exported - {result['message']}")
    return result


@celery_app.task(**EXPORT_TASK_OPTIONS)
def export_session_to_excel(self, session_data: dict) -> dict:
    """
    Append a completed session to sessions.xlsx.

    Args:
        session_data: Session record as stored (camelCase keys)
    """
    label = f"session {session_data.get('sessionId', 'unknown')}"
    return _timed_export(self.request.id, label, ExcelManager.export_session, session_data)


@celery_app.task(**EXPORT_TASK_OPTIONS)
def export_bill_to_excel(self, bill_data: dict) -> dict:
    """Append a sent bill to bills.xlsx."""
    label = f"bill {bill_data.get('sessionId', 'unknown')}"
    return _timed_export(self.request.id, label, ExcelManager.export_bill, bill_data)


@celery_app.task
def clear_excel_files() -> dict:
    """Delete both Excel exports (reset between demo runs)."""
    success = ExcelManager.clear_all()
    return {
        "success": success,
        "message": "Excel files cleared" if success else "Failed to clear Excel files",
        "timestamp": datetime.now().isoformat(),
    }
