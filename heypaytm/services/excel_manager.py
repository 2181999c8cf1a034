"""
Excel Export Manager with Concurrency Control

File-locked Excel exports for the restaurant office:
- Finished table sessions (one row per session)
- Bills sent to customers

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from heypaytm.core.config import get_settings

logger = logging.getLogger(__name__)

SESSIONS_FILENAME = "sessions.xlsx"
BILLS_FILENAME = "bills.xlsx"


class ExcelManager:
    """File-locked Excel writer; workers may export concurrently."""

    SESSION_COLUMNS = [
        "session_id",
        "table_number",
        "customer_name",
        "guest_count",
        "phone_number",
        "start_time",
        "status",
        "order_count",
        "items",
        "total_amount",
        "exported_at",
    ]

    BILL_COLUMNS = [
        "session_id",
        "table_number",
        "customer_name",
        "phone_number",
        "items",
        "subtotal",
        "tax",
        "total",
        "sent_at",
        "exported_at",
    ]

    @classmethod
    def data_dir(cls) -> Path:
        return Path(get_settings().data_directory)

    @classmethod
    def sessions_file(cls) -> Path:
        return cls.data_dir() / SESSIONS_FILENAME

    @classmethod
    def bills_file(cls) -> Path:
        return cls.data_dir() / BILLS_FILENAME

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = cls.data_dir()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    @classmethod
    def _append_row(
        cls,
        file_path: Path,
        columns: list,
        row: dict[str, Any],
        label: str,
    ) -> dict[str, Any]:
        cls._ensure_data_dir()

        result = {
            "success": False,
            "message": "",
            "exported_at": None,
        }
        lock_timeout = get_settings().excel_lock_timeout

        try:
            lock = FileLock(str(file_path) + ".lock", timeout=lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for {label}")

                df = cls._load_or_create_df(file_path, columns)

                export_time = datetime.now().isoformat()
                new_row = {column: row.get(column) for column in columns}
                new_row["exported_at"] = export_time

                new_df = pd.DataFrame([new_row], columns=columns)
                df = new_df if df.empty else pd.concat([df, new_df], ignore_index=True)
                df.to_excel(str(file_path), index=False, engine="openpyxl")

                logger.info(f"{label} exported to Excel")

                result["success"] = True
                result["message"] = f"{label} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for {label}")

        except Timeout:
            result["message"] = f"Lock timeout ({lock_timeout}s)"
            logger.error(f"Lock timeout for {label}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error exporting {label}")

        return result

    @classmethod
    def export_session(cls, session_data: dict[str, Any]) -> dict[str, Any]:
        """Export a finished session (camelCase storage record) to Excel."""
        orders = session_data.get("orders", [])
        items = [item for order in orders for item in order.get("items", [])]
        row = {
            "session_id": session_data.get("sessionId"),
            "table_number": session_data.get("tableNumber"),
            "customer_name": session_data.get("customerName"),
            "guest_count": session_data.get("guestCount"),
            "phone_number": session_data.get("phoneNumber"),
            "start_time": session_data.get("startTime"),
            "status": session_data.get("status"),
            "order_count": len(orders),
            "items": json.dumps(items, ensure_ascii=False),
            "total_amount": session_data.get("totalAmount", 0),
        }
        result = cls._append_row(cls.sessions_file(), cls.SESSION_COLUMNS, row, f"Session {row['session_id']}")
        result["session_id"] = row["session_id"]
        return result

    @classmethod
    def export_bill(cls, bill_data: dict[str, Any]) -> dict[str, Any]:
        """Export a sent bill (camelCase record) to Excel."""
        row = {
            "session_id": bill_data.get("sessionId"),
            "table_number": bill_data.get("tableNumber"),
            "customer_name": bill_data.get("customerName"),
            "phone_number": bill_data.get("phoneNumber"),
            "items": json.dumps(bill_data.get("items", []), ensure_ascii=False),
            "subtotal": bill_data.get("subtotal"),
            "tax": bill_data.get("tax"),
            "total": bill_data.get("total"),
            "sent_at": bill_data.get("sentAt"),
        }
        result = cls._append_row(cls.bills_file(), cls.BILL_COLUMNS, row, f"Bill {row['session_id']}")
        result["session_id"] = row["session_id"]
        return result

    @classmethod
    def get_all_sessions(cls) -> list[dict[str, Any]]:
        """Get all exported sessions from Excel."""
        return cls._read_records(cls.sessions_file())

    @classmethod
    def get_all_bills(cls) -> list[dict[str, Any]]:
        """Get all exported bills from Excel."""
        return cls._read_records(cls.bills_file())

    @classmethod
    def _read_records(cls, file_path: Path) -> list[dict[str, Any]]:
        if not file_path.exists():
            return []

        try:
            df = pd.read_excel(file_path, engine="openpyxl")
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading {file_path}: {e}")
            return []

    @classmethod
    def clear_all(cls) -> bool:
        """Delete all Excel exports."""
        try:
            for f in [cls.sessions_file(), cls.bills_file()]:
                for path in (f, Path(str(f) + ".lock")):
                    if path.exists():
                        path.unlink()
            logger.info("All Excel files cleared")
            return True
        except OSError as e:
            logger.error(f"Error clearing files: {e}")
            return False
