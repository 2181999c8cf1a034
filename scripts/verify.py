"""
Excel Verification Script

Verifies the session and bill exports written by the Celery worker.
Run from project root: python scripts/verify.py

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime

import pandas as pd

from heypaytm.services.excel_manager import ExcelManager


def verify_sheet(label: str, path, key: str, amount_column: str) -> bool:
    print(f"\n📄 {label}: {path}")

    if not path.exists():
        print("   ❌ File not found! Run the simulation first: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(path, engine="openpyxl")
    except Exception as e:
        print(f"   ❌ Could not read Excel file: {e}")
        return False

    print(f"   Rows: {len(df)}")

    duplicates = df[key].duplicated().sum() if key in df.columns else 0
    if duplicates > 0:
        print(f"   ⚠️ {duplicates} duplicate {key} values found!")
    else:
        print(f"   ✅ No duplicate {key} values")

    if amount_column in df.columns and len(df) > 0:
        print(f"   💰 Total: ₹{df[amount_column].sum():.0f} (average ₹{df[amount_column].mean():.0f})")
        print(df[[c for c in (key, "table_number", amount_column) if c in df.columns]].tail(5).to_string(index=False))

    return duplicates == 0


def verify_excel() -> bool:
    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    sessions_ok = verify_sheet("Sessions", ExcelManager.sessions_file(), "session_id", "total_amount")
    bills_ok = verify_sheet("Bills", ExcelManager.bills_file(), "session_id", "total")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if sessions_ok and bills_ok else "⚠️ VERIFICATION FOUND ISSUES")
    print("=" * 60)

    return sessions_ok and bills_ok


if __name__ == "__main__":
    verify_excel()
