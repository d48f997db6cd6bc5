"""
Feedback Load Simulation

Fires concurrent guest feedback submissions at a running server and reports
success rate and latency. Optionally reads the stats back as an admin.
Run from project root: python scripts/simulate.py --slug demo-bistro

Author: Your Name
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any, Optional

import httpx

# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_SUBMISSIONS = 50

COMMENTS = [
    None, "Great food!", "Service was slow", "Loved the ambiance",
    "A bit pricey", "Will come again", "Paneer tikka was perfect",
]


def generate_feedback_payload(restaurant_id: int) -> dict[str, Any]:
    """Random feedback, skewed towards good ratings."""
    def rating() -> int:
        return random.choices([1, 2, 3, 4, 5], weights=[1, 1, 2, 4, 4])[0]

    phone = None
    if random.random() < 0.5:
        phone = f"+91{random.choice('6789')}{random.randint(100000000, 999999999)}"

    return {
        "restaurant_id": restaurant_id,
        "phone_number": phone,
        "food_quality": rating(),
        "service": rating(),
        "ambiance": rating(),
        "pricing": rating(),
        "comments": random.choice(COMMENTS),
    }


async def send_feedback(
    client: httpx.AsyncClient,
    restaurant_id: int,
    submission_num: int,
) -> dict[str, Any]:
    payload = generate_feedback_payload(restaurant_id)
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/feedback/submit", json=payload, timeout=30.0
        )
        elapsed = round(time.time() - start_time, 3)
        if response.status_code == 200:
            return {
                "num": submission_num,
                "success": True,
                "feedback_id": response.json().get("feedback_id"),
                "time": elapsed,
            }
        return {
            "num": submission_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "num": submission_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def resolve_restaurant(client: httpx.AsyncClient, slug: str) -> Optional[int]:
    """Restaurant id from the public menu endpoint."""
    response = await client.get(f"{API_BASE_URL}/api/menu/{slug}")
    if response.status_code != 200:
        print(f"❌ Restaurant '{slug}' not found: {response.text[:100]}")
        return None
    return response.json()["restaurant"]["id"]


async def run_simulation(
    slug: str,
    num_submissions: int = TOTAL_SUBMISSIONS,
    admin_user: Optional[str] = None,
) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 FEEDBACK LOAD SIMULATION")
    print("=" * 70)
    print(f"📋 Submissions: {num_submissions}")
    print(f"🎯 Target: {API_BASE_URL} ({slug})")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        restaurant_id = await resolve_restaurant(client, slug)
        if restaurant_id is None:
            return {"total": num_submissions, "successful": 0, "failed": num_submissions}

        start_time = time.time()
        tasks = [send_feedback(client, restaurant_id, i + 1) for i in range(num_submissions)]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        print("\n" + "=" * 70)
        print("📊 SIMULATION RESULTS")
        print("=" * 70)
        rate = round(100 * len(successful) / num_submissions, 1) if num_submissions else 0.0
        print(f"\n✅ Successful: {len(successful)}/{num_submissions} ({rate}%)")
        print(f"❌ Failed: {len(failed)}/{num_submissions}")
        print(f"⏱️  Total Time: {total_time}s")

        if successful:
            times = sorted(r["time"] for r in successful)
            print("\n📈 Latency:")
            print(f"   Average: {round(sum(times) / len(times), 3)}s")
            print(f"   Median: {times[len(times) // 2]}s")
            print(f"   Fastest: {times[0]}s")
            print(f"   Slowest: {times[-1]}s")

        if failed:
            print("\n⚠️  Failed submissions (first 5):")
            for f in failed[:5]:
                print(f"   #{f['num']}: {f.get('error', 'Unknown error')}")

        if admin_user:
            response = await client.get(
                f"{API_BASE_URL}/api/feedback/stats/{restaurant_id}",
                headers={"X-Auth-Request-User": admin_user},
            )
            if response.status_code == 200:
                stats = response.json()["stats"]
                print("\n⭐ Restaurant stats:")
                print(f"   Reviews: {stats['total_reviews']}")
                print(f"   Overall rating: {stats['overall_rating']}")
            else:
                print(f"\n⚠️  Stats unavailable: {response.text[:100]}")

        print("=" * 70)

    return {
        "total": num_submissions,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Feedback load simulation")
    parser.add_argument("--slug", required=True, help="Restaurant slug")
    parser.add_argument("--count", type=int, default=TOTAL_SUBMISSIONS, help="Number of submissions")
    parser.add_argument("--admin", default=None, help="Admin username to read stats back")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")
    summary = asyncio.run(run_simulation(args.slug, args.count, args.admin))
    sys.exit(0 if summary["failed"] == 0 else 1)
