"""
Shared helpers for route handlers: row lookups and JSON shaping.
"""

import json
import logging
from typing import Any, Optional

from fastapi import HTTPException

from app.schemas import ErrorResponse
from app.services.dialect import CompatPool

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def as_bool(value: Any) -> Optional[bool]:
    """SQLite hands booleans back as 0/1."""
    if value is None:
        return None
    return bool(value)


def as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def like_pattern(term: str) -> str:
    return f"%{term}%"


def parse_custom_sections(value: Any) -> Any:
    """Decode ``custom_sections`` stored as JSON text."""
    if value is None or value == "":
        return None
    if isinstance(value, (bytes, str)):
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("Ignoring malformed custom_sections value")
            return None
    return value


def restaurant_payload(row: dict[str, Any]) -> dict[str, Any]:
    """Public view of a restaurant row."""
    return {
        "id": row["id"],
        "name": row["name"],
        "slug": row["slug"],
        "logo_url": row.get("logo_url"),
        "image_url": row.get("image_url"),
        "description": row.get("description"),
        "address": row.get("address"),
        "phone": row.get("phone"),
        "wifi_name": row.get("wifi_name"),
        "wifi_password": row.get("wifi_password"),
        "custom_sections": parse_custom_sections(row.get("custom_sections")),
    }


def restaurant_summary(row: dict[str, Any]) -> dict[str, Any]:
    return {"id": row["id"], "name": row["name"], "slug": row["slug"]}


def item_payload(row: dict[str, Any], *extra: str) -> dict[str, Any]:
    """Public view of a menu item row, plus any ``extra`` columns."""
    payload = {
        "id": row["id"],
        "name": row["name"],
        "description": row.get("description"),
        "price": as_float(row["price"]),
        "is_available": as_bool(row.get("is_available")),
        "item_code": row.get("item_code"),
        "is_veg": as_bool(row.get("is_veg")),
    }
    for key in extra:
        payload[key] = row.get(key)
    return payload


def menu_item_row(row: dict[str, Any]) -> dict[str, Any]:
    """Full menu item row with driver types normalised."""
    item = dict(row)
    item["price"] = as_float(item.get("price"))
    item["is_available"] = as_bool(item.get("is_available"))
    item["is_veg"] = as_bool(item.get("is_veg"))
    return item


async def fetch_restaurant_by_slug(pool: CompatPool, slug: str) -> dict[str, Any]:
    rows, _ = await pool.execute("SELECT * FROM restaurants WHERE slug = ?", [slug])
    if not rows:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return rows[0]


async def fetch_restaurant_by_id(pool: CompatPool, restaurant_id: int) -> dict[str, Any]:
    rows, _ = await pool.execute("SELECT * FROM restaurants WHERE id = ?", [restaurant_id])
    if not rows:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return rows[0]
