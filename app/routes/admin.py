"""
Admin Endpoints

Restaurant management and maintenance operations for the admin panel.
Every endpoint requires a resolved user; the role gate varies.

Endpoints:
    - GET /api/admin/restaurants: List with available-item counts
    - GET /api/admin/restaurants/{id}: Restaurant with all items
    - POST /api/admin/restaurants: Create restaurant
    - PUT /api/admin/restaurants/{id}: Update restaurant
    - DELETE /api/admin/restaurants/{id}: Delete restaurant (cascades)
    - POST /api/admin/restaurants/{id}/reset-menu: Clear one menu
    - POST /api/admin/reset-all: Clear all restaurants and menus
    - DELETE /api/admin/wipe-menu: Clear all menus
    - GET /api/admin/menu-items/search: Search a restaurant's items
    - GET /api/admin/qr/{slug}: Menu URL to encode as QR
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.routes.common import (
    ERROR_RESPONSES,
    fetch_restaurant_by_id,
    fetch_restaurant_by_slug,
    like_pattern,
    menu_item_row,
    parse_custom_sections,
    restaurant_payload,
    restaurant_summary,
)
from app.routes.deps import (
    can_add_restaurant,
    can_delete_restaurant,
    can_manage_menu,
    get_current_user,
    require_admin,
    require_viewer,
)
from app.schemas import RestaurantCreate, RestaurantUpdate
from app.services.dialect import CompatPool, get_pool

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(get_current_user)],
)

SLUG_TAKEN = "Restaurant with this slug already exists"


async def _slug_in_use(pool: CompatPool, slug: str, exclude_id: Optional[int] = None) -> bool:
    if exclude_id is None:
        rows, _ = await pool.execute("SELECT id FROM restaurants WHERE slug = ?", [slug])
    else:
        rows, _ = await pool.execute(
            "SELECT id FROM restaurants WHERE slug = ? AND id <> ?", [slug, exclude_id]
        )
    return bool(rows)


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.get("/restaurants", summary="List restaurants")
async def list_restaurants(
    search: Optional[str] = Query(None),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_viewer),
) -> dict[str, Any]:
    """
    All restaurants with their count of available menu items.

    ``search`` matches name or slug as a case-insensitive substring, and
    the id exactly when it is numeric.
    """
    sql = (
        "SELECT r.*, COUNT(CASE WHEN mi.is_available = TRUE THEN mi.id END) AS menu_item_count "
        "FROM restaurants r LEFT JOIN menu_items mi ON r.id = mi.restaurant_id"
    )
    params: list[Any] = []

    term = (search or "").strip()
    if term:
        pattern = like_pattern(term)
        conditions = ["LOWER(r.name) LIKE LOWER(?)", "LOWER(r.slug) LIKE LOWER(?)"]
        params = [pattern, pattern]
        if term.isdecimal():
            conditions.insert(0, "r.id = ?")
            params.insert(0, int(term))
        sql += " WHERE " + " OR ".join(conditions)

    sql += " GROUP BY r.id ORDER BY r.id ASC"

    rows, _ = await pool.execute(sql, params)
    for row in rows:
        row["custom_sections"] = parse_custom_sections(row.get("custom_sections"))
        row["menu_item_count"] = int(row["menu_item_count"] or 0)

    return {"success": True, "restaurants": rows}


@router.get("/restaurants/{restaurant_id}", summary="Restaurant with its menu")
async def get_restaurant(
    restaurant_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_viewer),
) -> dict[str, Any]:
    restaurant = await fetch_restaurant_by_id(pool, restaurant_id)

    rows, _ = await pool.execute(
        "SELECT category, id, name, description, price, image_url, is_available, "
        "sort_order, item_code, is_veg "
        "FROM menu_items WHERE restaurant_id = ? "
        "ORDER BY category, sort_order, item_code",
        [restaurant_id],
    )

    categories: dict[str, list] = {}
    for row in rows:
        item = menu_item_row(row)
        categories.setdefault(item.pop("category"), []).append(item)

    return {
        "success": True,
        "restaurant": restaurant_payload(restaurant),
        "categories": categories,
    }


@router.post("/restaurants", summary="Create restaurant")
async def create_restaurant(
    restaurant: RestaurantCreate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_add_restaurant),
) -> dict[str, Any]:
    if await _slug_in_use(pool, restaurant.slug):
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)

    try:
        header, _ = await pool.execute(
            "INSERT INTO restaurants (name, slug, logo_url, image_url, description, "
            "address, phone, wifi_name, wifi_password, custom_sections) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                restaurant.name, restaurant.slug, restaurant.logo_url,
                restaurant.image_url or None, restaurant.description,
                restaurant.address or None, restaurant.phone or None,
                restaurant.wifi_name or None, restaurant.wifi_password or None,
                restaurant.custom_sections or None,
            ],
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)

    logger.info(f"Restaurant '{restaurant.slug}' created by {user['username']}")
    return {
        "success": True,
        "message": "Restaurant created successfully",
        "restaurant_id": header.insert_id,
        "menu_url": get_settings().menu_url(restaurant.slug),
    }


@router.put("/restaurants/{restaurant_id}", summary="Update restaurant")
async def update_restaurant(
    restaurant_id: int,
    update: RestaurantUpdate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_viewer),
) -> dict[str, Any]:
    current = await fetch_restaurant_by_id(pool, restaurant_id)
    fields = update.model_dump(exclude_unset=True)

    new_slug = fields.get("slug") or current["slug"]
    if new_slug != current["slug"] and await _slug_in_use(pool, new_slug, restaurant_id):
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)

    custom_sections = parse_custom_sections(current["custom_sections"])
    if "custom_sections" in fields:
        custom_sections = fields["custom_sections"] or None

    def keep(key: str) -> Any:
        return fields[key] if key in fields else current[key]

    try:
        await pool.execute(
            "UPDATE restaurants SET name = ?, slug = ?, logo_url = ?, image_url = ?, "
            "description = ?, address = ?, phone = ?, wifi_name = ?, wifi_password = ?, "
            "custom_sections = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [
                fields.get("name") or current["name"], new_slug,
                keep("logo_url"), keep("image_url"), keep("description"),
                keep("address"), keep("phone"), keep("wifi_name"), keep("wifi_password"),
                custom_sections, restaurant_id,
            ],
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)

    return {"success": True, "message": "Restaurant updated successfully"}


@router.delete("/restaurants/{restaurant_id}", summary="Delete restaurant")
async def delete_restaurant(
    restaurant_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_delete_restaurant),
) -> dict[str, Any]:
    """Menu items, categories and feedback go with it (ON DELETE CASCADE)."""
    header, _ = await pool.execute("DELETE FROM restaurants WHERE id = ?", [restaurant_id])
    if header.affected_rows == 0:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    logger.warning(f"Restaurant #{restaurant_id} deleted by {user['username']}")
    return {"success": True, "message": "Restaurant deleted successfully"}


@router.post("/restaurants/{restaurant_id}/reset-menu", summary="Clear a restaurant's menu")
async def reset_restaurant_menu(
    restaurant_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_delete_restaurant),
) -> dict[str, Any]:
    """
    Delete this restaurant's items and categories in one transaction.
    Id sequences restart at 1 for tables left empty.
    """
    await fetch_restaurant_by_id(pool, restaurant_id)

    reset_tables = []
    async with pool.transaction() as conn:
        items, _ = await conn.execute(
            "DELETE FROM menu_items WHERE restaurant_id = ?", [restaurant_id]
        )
        categories, _ = await conn.execute(
            "DELETE FROM categories WHERE restaurant_id = ?", [restaurant_id]
        )
        for table in ("menu_items", "categories"):
            rows, _ = await conn.execute(f"SELECT COUNT(*) AS count FROM {table}")
            if int(rows[0]["count"]) == 0:
                await conn.reset_identity(table)
                reset_tables.append(table)

    logger.warning(
        f"Menu of restaurant #{restaurant_id} reset by {user['username']}: "
        f"{items.affected_rows} items, {categories.affected_rows} categories"
    )
    return {
        "success": True,
        "message": "Restaurant menu reset. Items and categories deleted.",
        "deleted_items": items.affected_rows,
        "deleted_categories": categories.affected_rows,
        "sequences_reset": reset_tables,
    }


# =============================================================================
# MAINTENANCE
# =============================================================================

@router.post("/reset-all", summary="Delete all data")
async def reset_all(
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    """Delete every restaurant, menu and review and restart their id sequences."""
    tables = ("feedback", "menu_items", "categories", "restaurants")
    async with pool.transaction() as conn:
        for table in tables:
            await conn.execute(f"DELETE FROM {table}")
        for table in tables:
            await conn.reset_identity(table)

    logger.warning(f"All restaurant data reset by {user['username']}")
    return {
        "success": True,
        "message": "All data deleted and auto-increment counters reset to 1",
    }


@router.delete("/wipe-menu", summary="Delete all menus")
async def wipe_menu(
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    async with pool.transaction() as conn:
        await conn.execute("DELETE FROM menu_items")
        await conn.execute("DELETE FROM categories")

    logger.warning(f"All menu items and categories wiped by {user['username']}")
    return {"success": True, "message": "All menu items and categories deleted"}


@router.get("/menu-items/search", summary="Search menu items")
async def search_menu_items(
    restaurant_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    if restaurant_id is None:
        raise HTTPException(status_code=400, detail="restaurant_id is required")

    sql = (
        "SELECT mi.*, r.name AS restaurant_name, r.slug AS restaurant_slug "
        "FROM menu_items mi JOIN restaurants r ON mi.restaurant_id = r.id "
        "WHERE mi.restaurant_id = ?"
    )
    params: list[Any] = [restaurant_id]

    term = (search or "").strip()
    if term:
        pattern = like_pattern(term)
        conditions = [
            "LOWER(mi.name) LIKE LOWER(?)",
            "LOWER(mi.description) LIKE LOWER(?)",
            "LOWER(mi.category) LIKE LOWER(?)",
        ]
        params += [pattern, pattern, pattern]
        if term.isdecimal():
            conditions.append("mi.item_code = ?")
            params.append(int(term))
        sql += " AND (" + " OR ".join(conditions) + ")"

    sql += " ORDER BY mi.item_code ASC"

    rows, _ = await pool.execute(sql, params)
    return {"success": True, "items": [menu_item_row(row) for row in rows]}


@router.get("/qr/{slug}", summary="Menu URL for a QR code")
async def admin_qr(
    slug: str,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_viewer),
) -> dict[str, Any]:
    restaurant = await fetch_restaurant_by_slug(pool, slug)
    return {
        "success": True,
        "restaurant": restaurant_summary(restaurant),
        "menu_url": get_settings().menu_url(slug),
    }
