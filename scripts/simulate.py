"""
Dinner Rush Simulation Script

Simulates many tables ordering in batches while the kitchen reports
deliveries, all concurrently, against a running API.
Run from project root: python scripts/simulate.py

Tables and dishes are seeded straight into the database configured by
DATABASE_URL, since the API only manages order items.

Version: 1.0.0
"""

import asyncio
import sys
import os
import random
import time
import uuid
import argparse
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from order_tracker.core.config import get_settings
from order_tracker.database import build_engine, build_session_maker, init_db
from order_tracker.models import DiningTable, Menu

# Configuration
API_BASE_URL = "http://localhost:8000"
TOTAL_TABLES = 20

# Sample dishes: (name, price, prep_time minutes)
MENU_ITEMS = [
    ("Pizza Margherita", "14.99", 15),
    ("Pepperoni Pizza", "16.99", 15),
    ("Caesar Salad", "8.99", 5),
    ("Garlic Bread", "5.99", 4),
    ("Pasta Carbonara", "13.99", 12),
    ("Tiramisu", "7.99", 2),
    ("Coke", "2.99", 1),
    ("Sparkling Water", "3.49", 1),
]


# =============================================================================
# SEEDING
# =============================================================================

async def seed_database(num_tables: int) -> tuple[list[uuid.UUID], list[uuid.UUID]]:
    """Insert tables and dishes; returns their ids."""
    settings = get_settings()
    engine = build_engine(settings.database_url)
    await init_db(engine)

    tables = [DiningTable(id=uuid.uuid4(), name=f"Table {i + 1}") for i in range(num_tables)]
    dishes = [
        Menu(id=uuid.uuid4(), name=name, price=Decimal(price), prep_time=prep_time)
        for name, price, prep_time in MENU_ITEMS
    ]

    async with build_session_maker(engine)() as session:
        async with session.begin():
            session.add_all(tables + dishes)

    await engine.dispose()
    return [t.id for t in tables], [d.id for d in dishes]


def generate_random_items(menu_ids: list[uuid.UUID]) -> list[dict]:
    """Generate one round of orders for a table."""
    return [
        {"menu_id": str(random.choice(menu_ids)), "quantity": random.randint(1, 3)}
        for _ in range(random.randint(1, 6))
    ]


# =============================================================================
# TABLE SIMULATION
# =============================================================================

async def serve_table(
    client: httpx.AsyncClient,
    table_id: uuid.UUID,
    menu_ids: list[uuid.UUID],
) -> dict[str, Any]:
    """
    Order a round for one table, then deliver everything one plate at a
    time until nothing is left.
    """
    items_url = f"{API_BASE_URL}/tables/{table_id}/items"
    start_time = time.time()
    requests = 0

    try:
        response = await client.post(
            items_url,
            json={"items": generate_random_items(menu_ids)},
            timeout=30.0
        )
        requests += 1
        if response.status_code != 201:
            raise RuntimeError(f"create failed: {response.text[:100]}")
        ordered = sum(item["quantity"] for item in response.json()["items"])

        delivered = 0
        while True:
            response = await client.get(items_url, params={"limit": 100}, timeout=30.0)
            requests += 1
            if response.status_code == 404:
                break
            response.raise_for_status()

            remaining = response.json()
            updates = [{"id": item["id"], "delivered_quantity": 1} for item in remaining]
            response = await client.put(items_url, json={"items": updates}, timeout=30.0)
            requests += 1
            response.raise_for_status()
            delivered += len(updates)

        return {
            "table_id": str(table_id),
            "success": delivered == ordered,
            "ordered": ordered,
            "delivered": delivered,
            "requests": requests,
            "time": round(time.time() - start_time, 3),
        }
    except Exception as e:
        return {
            "table_id": str(table_id),
            "success": False,
            "error": str(e)[:100],
            "requests": requests,
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_tables: int = TOTAL_TABLES) -> dict[str, Any]:
    """
    Run the dinner rush.

    Args:
        num_tables: Number of tables ordering at the same time
    """
    print("=" * 70)
    print("DINNER RUSH SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"Tables: {num_tables}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    table_ids, menu_ids = await seed_database(num_tables)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"\nHealth check failed: {response.text}")
            return {"total": num_tables, "successful": 0, "failed": num_tables}

        tasks = [serve_table(client, table_id, menu_ids) for table_id in table_ids]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nFully served tables: {len(successful)}/{num_tables}")
    print(f"Failed tables: {len(failed)}/{num_tables}")
    print(f"Total Time: {total_time}s")

    if successful:
        plates = sum(r["delivered"] for r in successful)
        requests = sum(r["requests"] for r in results)
        print(f"\nPlates delivered: {plates}")
        print(f"Requests sent: {requests}")
        print(f"Slowest table: {max(r['time'] for r in successful)}s")

    if failed:
        print(f"\nFailed table details (showing first 5):")
        for f in failed[:5]:
            print(f"   {f['table_id']}: {f.get('error', 'delivered/ordered mismatch')}")

    print("=" * 70)

    return {
        "total": num_tables,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dinner Rush Simulation Script")
    parser.add_argument("--tables", type=int, default=TOTAL_TABLES, help="Number of tables")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    summary = asyncio.run(run_simulation(args.tables))
    sys.exit(0 if summary["failed"] == 0 else 1)
