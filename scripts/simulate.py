"""
Dining Room Simulation Script

Seats parties at many tables at once and walks each one through a full
visit: voice order, kitchen progress, bill request, payment, table cleared.
Run from project root with the API up: python scripts/simulate.py

Author: Khalil Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
MAX_TABLES = 24

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Karan", "Priya", "Arjun", "Neha", "Vikram", "Sana", "Rohit"]
VOICE_ITEMS = ["butter naan", "garlic naan", "paneer tikka", "chicken biryani", "dal makhani", "mango lassi", "masala chai"]
QUANTITY_WORDS = ["one", "two", "three", "2", "4"]


def random_phone() -> str:
    return f"{random.randint(6, 9)}{random.randint(100, 999)}-{random.randint(100000, 999999)}"


async def run_table(client: httpx.AsyncClient, table_number: int) -> dict[str, Any]:
    """Full visit for one table; returns timing and the amount billed."""
    start_time = time.time()
    result: dict[str, Any] = {"table": table_number, "success": False}

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/sessions",
            json={
                "tableNumber": table_number,
                "customerName": random.choice(FIRST_NAMES),
                "guestCount": random.randint(1, 6),
            },
        )
        if response.status_code != 201:
            result["error"] = f"seat: {response.text[:100]}"
            return result

        for _ in range(random.randint(1, 3)):
            phrase = f"Hey Paytm, order {random.choice(QUANTITY_WORDS)} {random.choice(VOICE_ITEMS)}"
            await client.post(f"{API_BASE_URL}/api/voice/{table_number}", json={"transcript": phrase})

        response = await client.post(
            f"{API_BASE_URL}/api/voice/{table_number}",
            json={"transcript": "Hey Paytm, I'm done"},
        )
        order = response.json().get("submittedOrder")
        if not order:
            result["error"] = f"voice: {response.json().get('message')}"
            return result

        for status in ("preparing", "ready", "served"):
            await client.patch(
                f"{API_BASE_URL}/api/sessions/{table_number}/orders/{order['id']}",
                json={"status": status},
            )

        await client.post(
            f"{API_BASE_URL}/api/sessions/{table_number}/payment-request",
            json={"phoneNumber": random_phone()},
        )
        bill = await client.post(f"{API_BASE_URL}/api/sessions/{table_number}/bill")

        response = await client.post(f"{API_BASE_URL}/api/sessions/{table_number}/complete")
        if response.status_code != 200:
            result["error"] = f"complete: {response.text[:100]}"
            return result

        result.update(
            success=True,
            total=response.json().get("totalAmount", 0),
            bill_sent=bill.status_code == 200,
        )
        return result

    except httpx.HTTPError as e:
        result["error"] = str(e)[:100]
        return result

    finally:
        result["time"] = round(time.time() - start_time, 3)


async def run_simulation(num_tables: int) -> dict[str, Any]:
    print("=" * 70)
    print("🍽️  DINING ROOM SIMULATION")
    print("=" * 70)
    print(f"📋 Tables: {num_tables}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient(timeout=30.0) as client:
        results = await asyncio.gather(*[run_table(client, t) for t in range(1, num_tables + 1)])
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print(f"\n✅ Completed visits: {len(successful)}/{num_tables}")
    print(f"❌ Failed visits: {len(failed)}/{num_tables}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        revenue = sum(r["total"] for r in successful)
        bills = len([r for r in successful if r["bill_sent"]])
        print(f"\n💰 Revenue: ₹{revenue:.0f}")
        print(f"📱 Bills sent: {bills}/{len(successful)}")
        print(f"   Average visit: {round(sum(r['time'] for r in successful) / len(successful), 3)}s")

    if failed:
        print("\n⚠️  Failed tables (first 5):")
        for f in failed[:5]:
            print(f"   Table {f['table']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 NEXT: check the Celery terminal, then run python scripts/verify.py")
    print("=" * 70)

    return {"total": num_tables, "successful": len(successful), "failed": len(failed), "results": results}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dining Room Simulation Script")
    parser.add_argument("--tables", type=int, default=MAX_TABLES, help="Number of tables to seat")
    args = parser.parse_args()

    asyncio.run(run_simulation(min(args.tables, MAX_TABLES)))
