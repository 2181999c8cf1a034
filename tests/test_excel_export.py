"""
Tests for the Excel exports and their Celery tasks (eager mode)
"""

import pytest

from heypaytm.services.excel_manager import ExcelManager
from heypaytm.tasks import clear_excel_files, export_bill_to_excel, export_session_to_excel


@pytest.fixture(autouse=True)
def clean_exports():
    ExcelManager.clear_all()
    yield
    ExcelManager.clear_all()


@pytest.fixture
def finished_session(session_manager):
    session_manager.create_session(5, "Asha", 2)
    session_manager.add_order_to_session(5, [{"name": "Naan", "quantity": 2, "price": 40}])
    session_manager.update_session_phone(5, "9876543210")
    return session_manager.complete_session(5)


class TestExcelManager:

    def test_export_session_row(self, finished_session):
        result = ExcelManager.export_session(finished_session.to_storage())

        assert result["success"] is True
        rows = ExcelManager.get_all_sessions()
        assert len(rows) == 1
        assert rows[0]["session_id"] == finished_session.session_id
        assert rows[0]["table_number"] == 5
        assert rows[0]["order_count"] == 1
        assert rows[0]["total_amount"] == 80
        assert rows[0]["status"] == "completed"

    def test_rows_append(self, finished_session):
        ExcelManager.export_session(finished_session.to_storage())
        ExcelManager.export_session(finished_session.to_storage())
        assert len(ExcelManager.get_all_sessions()) == 2

    def test_export_bill_row(self):
        result = ExcelManager.export_bill({
            "sessionId": "T5-ABC",
            "tableNumber": 5,
            "customerName": "Asha",
            "phoneNumber": "9876543210",
            "items": [{"name": "Naan", "quantity": 2, "price": 40}],
            "subtotal": 80,
            "tax": 4,
            "total": 84,
            "sentAt": "2026-01-01T12:00:00+00:00",
        })

        assert result["success"] is True
        rows = ExcelManager.get_all_bills()
        assert rows[0]["total"] == 84

    def test_no_exports_reads_empty(self):
        assert ExcelManager.get_all_sessions() == []
        assert ExcelManager.get_all_bills() == []


class TestExportTasks:
    """Tasks run inline with CELERY_ALWAYS_EAGER"""

    def test_export_session_task(self, finished_session):
        result = export_session_to_excel.delay(finished_session.to_storage()).get()

        assert result["success"] is True
        assert result["session_id"] == finished_session.session_id
        assert "processing_time_seconds" in result

    def test_export_bill_task(self):
        result = export_bill_to_excel.delay({"sessionId": "T1-X", "tableNumber": 1, "total": 42}).get()
        assert result["success"] is True

    def test_clear_task(self, finished_session):
        ExcelManager.export_session(finished_session.to_storage())
        assert clear_excel_files.delay().get()["success"] is True
        assert ExcelManager.get_all_sessions() == []
