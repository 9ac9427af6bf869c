"""
Order Load Simulation Script

Seeds a restaurant, its menu and a handful of customers, then fires
concurrent orders at the running API and prints the resulting reports.
Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50

CUSTOMER_NAMES = ["John Smith", "Jane Johnson", "Mike Brown", "Sarah Garcia", "Tom Miller", "Emma Davis"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "price": 14.99},
    {"name": "Pepperoni Pizza", "price": 16.99},
    {"name": "Caesar Salad", "price": 8.99},
    {"name": "Garlic Bread", "price": 5.99},
    {"name": "Pasta Carbonara", "price": 13.99},
    {"name": "Tiramisu", "price": 7.99},
]


# =============================================================================
# SEEDING
# =============================================================================

async def seed(client: httpx.AsyncClient) -> dict[str, Any]:
    """Create one restaurant with a menu, plus the customers."""
    response = await client.post(
        f"{API_BASE_URL}/restaurants",
        json={"name": "Simulation Pizza Palace", "location": "350 Fifth Avenue"},
    )
    response.raise_for_status()
    restaurant = response.json()

    menu = []
    for item in MENU_ITEMS:
        response = await client.post(
            f"{API_BASE_URL}/restaurants/{restaurant['id']}/menu",
            json=item,
        )
        response.raise_for_status()
        menu.append(response.json())

    customers = []
    for name in CUSTOMER_NAMES:
        response = await client.post(f"{API_BASE_URL}/customers", json={"name": name})
        response.raise_for_status()
        customers.append(response.json())

    print(f"🌱 Seeded restaurant #{restaurant['id']}, {len(menu)} menu items, {len(customers)} customers")
    return {"restaurant": restaurant, "menu": menu, "customers": customers}


def generate_order_payload(data: dict[str, Any], include_unknown: bool) -> dict[str, Any]:
    """Random order; optionally with a line for a menu item that doesn't exist."""
    items = [
        {"menuItemId": random.choice(data["menu"])["id"], "quantity": random.randint(1, 3)}
        for _ in range(random.randint(1, 4))
    ]
    if include_unknown:
        items.append({"menuItemId": 10_000_000, "quantity": 1})
    return {
        "customerId": random.choice(data["customers"])["id"],
        "restaurantId": data["restaurant"]["id"],
        "items": items,
    }


async def send_order(
    client: httpx.AsyncClient,
    data: dict[str, Any],
    order_num: int,
) -> dict[str, Any]:
    """Place one order and time the round trip."""
    payload = generate_order_payload(data, include_unknown=order_num % 10 == 0)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            order = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": order["id"],
                "total": order["totalPrice"],
                "dropped": len(payload["items"]) - len(order["orderItems"]),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, complete_ratio: float = 0.5) -> dict[str, Any]:
    """
    Run the simulation.

    Args:
        num_orders: Number of orders to place concurrently
        complete_ratio: Share of successful orders marked Completed afterwards
    """
    print("=" * 70)
    print("🔥 ORDER SIMULATION - CONCURRENT ORDERS")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        data = await seed(client)

        start_time = time.time()
        tasks = [send_order(client, data, i + 1) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        to_complete = successful[: int(len(successful) * complete_ratio)]
        await asyncio.gather(*[
            client.patch(f"{API_BASE_URL}/orders/{r['order_id']}/status", json={"status": "Completed"})
            for r in to_complete
        ])

        revenue = (await client.get(f"{API_BASE_URL}/restaurants/{data['restaurant']['id']}/revenue")).json()
        top_customers = (await client.get(f"{API_BASE_URL}/customers/top")).json()
        top_item = (await client.get(f"{API_BASE_URL}/menu/top-items")).json()

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        expected_revenue = sum(r["total"] for r in to_complete)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Dropped lines: {sum(r['dropped'] for r in successful)}")
        print(f"\n💰 Revenue (completed): ${revenue['revenue']:.2f} (expected ${expected_revenue:.2f})")

    print(f"\n🏆 Top customers:")
    for row in top_customers:
        print(f"   #{row['id']} {row['name']}: {row['orderCount']} orders")
    if top_item:
        print(f"🍕 Best seller: {top_item['name']}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight() -> bool:
    """Check the API is up before firing orders."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health", timeout=5.0)
        except httpx.HTTPError as e:
            print(f"❌ API not reachable at {API_BASE_URL}: {e}")
            return False
    health = response.json()
    print(f"🩺 Health: {health.get('status')} (database: {health.get('database')})")
    return health.get("status") == "operational"


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Load Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--complete", type=float, default=0.5, help="Share of orders to mark Completed")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(preflight()):
        sys.exit(1)

    asyncio.run(run_simulation(args.orders, args.complete))
