"""
Sample Data Script

Creates the schema if needed and inserts a demo café with categories,
menu items and the bootstrap admin. Safe to run twice: an existing
restaurant slug is left untouched.
Run from project root: python scripts/seed.py

Author: Your Name
Version: 1.0.0
"""

import asyncio
import logging
import os
import sys
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import get_settings, setup_logging
from app.database import engine, init_db
from app.services.dialect import get_pool

logger = logging.getLogger("seed")

RESTAURANT = {
    "name": "Café Aroma",
    "slug": "cafe-aroma",
    "logo_url": "https://images.unsplash.com/photo-1554118811-1e0d58224f24?w=200&h=200&fit=crop",
    "description": "A cozy coffee shop serving artisanal beverages and fresh pastries",
    "wifi_name": "CafeAroma-Guest",
    "wifi_password": "aroma2024",
}

CATEGORIES = [
    ("Beverages", "Hot and cold drinks", "#8B4513"),
    ("Pastries", "Fresh baked goods", "#D2691E"),
    ("Sandwiches", "Fresh sandwiches and wraps", "#228B22"),
]

# category, name, description, price, availability, is_veg
ITEMS = [
    ("Beverages", "Espresso", "Rich, full-bodied coffee with a perfect crema", "3.50", "06:00 - 18:00", True),
    ("Beverages", "Cappuccino", "Espresso with steamed milk and foam", "4.25", "06:00 - 18:00", True),
    ("Beverages", "Café Latte", "Smooth espresso with steamed milk", "4.75", "06:00 - 18:00", True),
    ("Beverages", "Americano", "Espresso with hot water", "3.75", "06:00 - 18:00", True),
    ("Pastries", "Butter Croissant", "Flaky, buttery pastry baked fresh daily", "3.25", "07:00 - 15:00", True),
    ("Pastries", "Blueberry Muffin", "Moist muffin packed with fresh blueberries", "3.75", "07:00 - 15:00", True),
    ("Pastries", "Cranberry Scone", "Traditional scone with dried cranberries", "3.50", "07:00 - 15:00", True),
    ("Sandwiches", "Avocado Toast", "Smashed avocado on sourdough with cherry tomatoes", "8.50", "08:00 - 16:00", True),
    ("Sandwiches", "Turkey & Swiss", "Sliced turkey with Swiss cheese, lettuce, and tomato", "9.25", "08:00 - 16:00", False),
    ("Sandwiches", "Grilled Cheese", "Three-cheese blend on artisan bread", "7.75", "08:00 - 16:00", True),
]


async def seed() -> bool:
    await init_db()
    pool = get_pool()

    rows, _ = await pool.execute("SELECT id FROM restaurants WHERE slug = ?", [RESTAURANT["slug"]])
    if rows:
        logger.warning(f"⚠️ Restaurant '{RESTAURANT['slug']}' already exists, nothing to do")
        return False

    async with pool.transaction() as conn:
        logger.info("🏪 Inserting restaurant...")
        header, _ = await conn.execute(
            "INSERT INTO restaurants (name, slug, logo_url, description, wifi_name, wifi_password) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                RESTAURANT["name"], RESTAURANT["slug"], RESTAURANT["logo_url"],
                RESTAURANT["description"], RESTAURANT["wifi_name"], RESTAURANT["wifi_password"],
            ],
        )
        restaurant_id = header.insert_id

        logger.info("📦 Inserting categories...")
        category_ids = {}
        for sort_order, (name, description, color) in enumerate(CATEGORIES, start=1):
            header, _ = await conn.execute(
                "INSERT INTO categories (restaurant_id, name, description, color, sort_order) "
                "VALUES (?, ?, ?, ?, ?)",
                [restaurant_id, name, description, color, sort_order],
            )
            category_ids[name] = header.insert_id

        logger.info("🍽️ Inserting menu items...")
        values = []
        positions: dict[str, int] = {}
        for item_code, (category, name, description, price, hours, is_veg) in enumerate(ITEMS, start=1):
            positions[category] = positions.get(category, 0) + 1
            values.append([
                restaurant_id, category_ids[category], category, name, description,
                Decimal(price), hours, positions[category], item_code, is_veg,
            ])
        await conn.query(
            "INSERT INTO menu_items (restaurant_id, category_id, category, name, description, "
            "price, availability_time, sort_order, item_code, is_veg) VALUES ?",
            [values],
        )

    settings = get_settings()
    logger.info("✅ Sample data inserted successfully!")
    logger.info(f"   Menu URL: {settings.menu_url(RESTAURANT['slug'])}")
    return True


async def main() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
