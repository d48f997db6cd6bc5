"""
Public Menu & Menu Item Endpoints

Endpoints:
    - GET /api/menu/{slug}: Public menu grouped by category
    - GET /api/menu/{slug}/search: Search across all categories
    - GET /api/menu/{slug}/category/{name}/search: Search one category
    - POST /api/menu/add: Add a menu item
    - PUT /api/menu/{item_id}: Update a menu item
    - DELETE /api/menu/{item_id}: Delete a menu item
    - POST /api/menu/bulk-import: Import items from Excel
    - POST /api/menu/bulk-import-csv: Import items from CSV
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.routes.common import (
    ERROR_RESPONSES,
    fetch_restaurant_by_slug,
    item_payload,
    like_pattern,
    restaurant_payload,
)
from app.routes.deps import can_manage_menu
from app.schemas import MenuItemCreate, MenuItemUpdate
from app.services.dialect import CompatPool, get_pool
from app.services.menu_import import MenuImportError, parse_menu_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["Menu"], responses=ERROR_RESPONSES)

ITEM_COLUMNS = (
    "category, id, name, description, price, is_available, sort_order, item_code, "
    "COALESCE(is_veg, TRUE) AS is_veg"
)

BULK_INSERT_SQL = (
    "INSERT INTO menu_items "
    "(restaurant_id, category_id, category, name, description, price, "
    "availability_time, is_available, sort_order, item_code, is_veg) "
    "VALUES ?"
)


def _require_search_term(q: Optional[str]) -> str:
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search term is required")
    return q.strip()


async def _next_item_code(executor, restaurant_id: int) -> int:
    rows, _ = await executor.execute(
        "SELECT COALESCE(MAX(item_code), 0) AS max_code FROM menu_items WHERE restaurant_id = ?",
        [restaurant_id],
    )
    return int(rows[0]["max_code"] or 0) + 1


async def _category_id_for(pool: CompatPool, restaurant_id: int, name: str) -> Optional[int]:
    rows, _ = await pool.execute(
        "SELECT id FROM categories WHERE restaurant_id = ? AND name = ?",
        [restaurant_id, name],
    )
    return rows[0]["id"] if rows else None


# =============================================================================
# PUBLIC MENU
# =============================================================================

@router.get("/{slug}", summary="Public menu")
async def get_menu(slug: str, pool: CompatPool = Depends(get_pool)) -> dict[str, Any]:
    """
    Restaurant profile plus available items grouped by category.

    Categories appear in creation order; items whose category name has no
    matching category row are left out.
    """
    restaurant = await fetch_restaurant_by_slug(pool, slug)

    category_rows, _ = await pool.execute(
        "SELECT id, name, image_url FROM categories WHERE restaurant_id = ? ORDER BY id ASC",
        [restaurant["id"]],
    )
    category_order = [c["name"] for c in category_rows]
    category_meta = {
        c["name"]: {"id": c["id"], "image_url": c["image_url"]} for c in category_rows
    }

    item_rows, _ = await pool.execute(
        f"SELECT {ITEM_COLUMNS} FROM menu_items "
        "WHERE restaurant_id = ? AND is_available = TRUE "
        "ORDER BY sort_order, item_code",
        [restaurant["id"]],
    )

    categories: dict[str, list] = {name: [] for name in category_order}
    for item in item_rows:
        if item["category"] in categories:
            categories[item["category"]].append(item_payload(item))

    return {
        "success": True,
        "restaurant": restaurant_payload(restaurant),
        "categories": categories,
        "category_meta": category_meta,
        "category_order": category_order,
    }


@router.get("/{slug}/search", summary="Search a restaurant's menu")
async def search_menu(
    slug: str,
    q: Optional[str] = Query(None),
    pool: CompatPool = Depends(get_pool),
) -> dict[str, Any]:
    term = _require_search_term(q)
    restaurant = await fetch_restaurant_by_slug(pool, slug)

    pattern = like_pattern(term)
    rows, _ = await pool.execute(
        f"SELECT {ITEM_COLUMNS} FROM menu_items "
        "WHERE restaurant_id = ? AND is_available = TRUE "
        "AND (LOWER(name) LIKE LOWER(?) OR LOWER(description) LIKE LOWER(?) "
        "OR LOWER(category) LIKE LOWER(?)) "
        "ORDER BY category, sort_order, item_code",
        [restaurant["id"], pattern, pattern, pattern],
    )

    categories: dict[str, list] = {}
    for item in rows:
        categories.setdefault(item["category"], []).append(item_payload(item))

    return {
        "success": True,
        "restaurant": restaurant_payload(restaurant),
        "categories": categories,
        "search_term": term,
        "total_results": len(rows),
    }


@router.get("/{slug}/category/{category_name}/search", summary="Search within a category")
async def search_category(
    slug: str,
    category_name: str,
    q: Optional[str] = Query(None),
    pool: CompatPool = Depends(get_pool),
) -> dict[str, Any]:
    term = _require_search_term(q)
    restaurant = await fetch_restaurant_by_slug(pool, slug)

    pattern = like_pattern(term)
    rows, _ = await pool.execute(
        f"SELECT {ITEM_COLUMNS} FROM menu_items "
        "WHERE restaurant_id = ? AND category = ? AND is_available = TRUE "
        "AND (LOWER(name) LIKE LOWER(?) OR LOWER(description) LIKE LOWER(?)) "
        "ORDER BY sort_order, item_code",
        [restaurant["id"], category_name, pattern, pattern],
    )

    return {
        "success": True,
        "restaurant": restaurant_payload(restaurant),
        "category": category_name,
        "items": [item_payload(item) for item in rows],
        "search_term": term,
        "total_results": len(rows),
    }


# =============================================================================
# MENU ITEM MANAGEMENT
# =============================================================================

@router.post("/add", summary="Add menu item")
async def add_menu_item(
    item: MenuItemCreate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    """Add one item; its ``item_code`` is the restaurant's highest code plus one."""
    try:
        category_id = item.category_id
        if category_id is None:
            category_id = await _category_id_for(pool, item.restaurant_id, item.category)

        async with pool.transaction() as conn:
            item_code = await _next_item_code(conn, item.restaurant_id)
            header, _ = await conn.execute(
                "INSERT INTO menu_items "
                "(restaurant_id, category_id, category, name, description, price, image_url, "
                "availability_time, is_available, sort_order, item_code, is_veg) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    item.restaurant_id, category_id, item.category, item.name,
                    item.description, item.price, item.image_url,
                    item.availability_time, item.is_available, item.sort_order,
                    item_code, item.is_veg,
                ],
            )

        logger.info(f"Menu item #{header.insert_id} added by {user['username']}")
        return {
            "success": True,
            "message": "Menu item added successfully",
            "item_id": header.insert_id,
            "item_code": item_code,
        }

    except IntegrityError:
        raise HTTPException(status_code=400, detail="Invalid restaurant or category")


@router.put("/{item_id}", summary="Update menu item")
async def update_menu_item(
    item_id: int,
    update: MenuItemUpdate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    rows, _ = await pool.execute("SELECT * FROM menu_items WHERE id = ?", [item_id])
    if not rows:
        raise HTTPException(status_code=404, detail="Menu item not found")

    current = rows[0]
    fields = update.model_dump(exclude_unset=True)

    def pick(key: str, column: Optional[str] = None) -> Any:
        value = fields.get(key)
        return value if value is not None else current[column or key]

    new_is_veg = fields["is_veg"] if "is_veg" in fields else current["is_veg"]

    await pool.execute(
        "UPDATE menu_items SET category = ?, name = ?, description = ?, price = ?, "
        "is_available = ?, availability_time = ?, is_veg = ?, updated_at = CURRENT_TIMESTAMP "
        "WHERE id = ?",
        [
            pick("category"), pick("name"), pick("description"), pick("price"),
            pick("is_available"), pick("preparation_time", "availability_time"),
            new_is_veg, item_id,
        ],
    )

    logger.info(f"Menu item #{item_id} updated by {user['username']}")
    return {"success": True, "message": "Menu item updated successfully"}


@router.delete("/{item_id}", summary="Delete menu item")
async def delete_menu_item(
    item_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    header, _ = await pool.execute("DELETE FROM menu_items WHERE id = ?", [item_id])
    if header.affected_rows == 0:
        raise HTTPException(status_code=404, detail="Menu item not found")

    logger.info(f"Menu item #{item_id} deleted by {user['username']}")
    return {"success": True, "message": "Menu item deleted successfully"}


# =============================================================================
# BULK IMPORT
# =============================================================================

async def _bulk_import(
    pool: CompatPool,
    restaurant_id: int,
    category_name: Optional[str],
    category_id: Optional[int],
    upload: UploadFile,
    file_format: str,
) -> Any:
    settings = get_settings()
    content = await upload.read()
    logger.info(
        f"[IMPORT] {file_format} upload '{upload.filename}' ({len(content)} bytes) "
        f"for restaurant {restaurant_id}"
    )

    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_mb}MB upload limit",
        )

    category_name = (category_name or "").strip() or None
    if not category_name and category_id:
        rows, _ = await pool.execute(
            "SELECT name FROM categories WHERE id = ? AND restaurant_id = ?",
            [category_id, restaurant_id],
        )
        if not rows:
            raise HTTPException(status_code=400, detail="Invalid category_id for this restaurant")
        category_name = rows[0]["name"]
    elif category_name and not category_id:
        category_id = await _category_id_for(pool, restaurant_id, category_name)

    if not category_name:
        raise HTTPException(status_code=400, detail="category_name or category_id is required")

    try:
        parsed = parse_menu_upload(content, file_format)
    except MenuImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    errors = [e.to_dict() for e in parsed.errors]
    if not parsed.rows:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "No valid rows to insert", "errors": errors},
        )

    try:
        async with pool.transaction() as conn:
            first_code = await _next_item_code(conn, restaurant_id)
            values = [
                (
                    restaurant_id, category_id, category_name, row.name, row.description,
                    row.price, None, row.is_available, 0, first_code + offset, row.is_veg,
                )
                for offset, row in enumerate(parsed.rows)
            ]
            await conn.query(BULK_INSERT_SQL, [values])
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Invalid restaurant or category")

    logger.info(f"[IMPORT] inserted {len(values)} rows, skipped {parsed.skipped}")
    return {
        "success": True,
        "inserted": len(values),
        "skipped": parsed.skipped,
        "errors": errors,
    }


@router.post("/bulk-import", summary="Import menu items from Excel")
async def bulk_import_excel(
    restaurant_id: int = Form(...),
    category_name: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    file: UploadFile = File(...),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> Any:
    """
    Multipart upload with ``restaurant_id``, ``category_name`` or
    ``category_id`` and an .xlsx ``file``. Expected columns: name,
    description, price, is_available, veg.
    """
    return await _bulk_import(pool, restaurant_id, category_name, category_id, file, "excel")


@router.post("/bulk-import-csv", summary="Import menu items from CSV")
async def bulk_import_csv(
    restaurant_id: int = Form(...),
    category_name: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    file: UploadFile = File(...),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> Any:
    return await _bulk_import(pool, restaurant_id, category_name, category_id, file, "csv")
