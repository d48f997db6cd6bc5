"""
Category Endpoints

Categories are per restaurant; renaming one rewrites the ``category``
text of its menu items in the same transaction.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError

from app.routes.common import ERROR_RESPONSES, fetch_restaurant_by_id
from app.routes.deps import can_manage_menu
from app.schemas import CategoryCreate, CategoryUpdate
from app.services.dialect import CompatPool, get_pool

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"], responses=ERROR_RESPONSES)

DUPLICATE_MESSAGE = "Category with this name already exists in this restaurant"


@router.get("/", summary="List categories")
async def list_categories(
    restaurant_id: Optional[int] = Query(None),
    pool: CompatPool = Depends(get_pool),
) -> dict[str, Any]:
    sql = "SELECT * FROM categories"
    params: list[Any] = []
    if restaurant_id is not None:
        sql += " WHERE restaurant_id = ?"
        params.append(restaurant_id)
    sql += " ORDER BY id ASC"

    rows, _ = await pool.execute(sql, params)
    return {"success": True, "categories": rows}


@router.post("/", summary="Create category")
async def create_category(
    category: CategoryCreate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    await fetch_restaurant_by_id(pool, category.restaurant_id)

    try:
        header, _ = await pool.execute(
            "INSERT INTO categories (restaurant_id, name, description, image_url, color, sort_order) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [
                category.restaurant_id, category.name, category.description,
                category.image_url, category.color, category.sort_order,
            ],
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail=DUPLICATE_MESSAGE)

    logger.info(f"Category '{category.name}' created for restaurant {category.restaurant_id}")
    return {
        "success": True,
        "message": "Category created successfully",
        "category": {
            "id": header.insert_id,
            "restaurant_id": category.restaurant_id,
            "name": category.name,
            "description": category.description,
            "image_url": category.image_url,
            "color": category.color,
            "sort_order": category.sort_order,
        },
    }


@router.put("/{category_id}", summary="Update category")
async def update_category(
    category_id: int,
    update: CategoryUpdate,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    """
    Update a category. A rename is propagated to menu items linked by
    ``category_id`` and to legacy items that only carry the old name.
    """
    fields = update.model_dump(exclude_unset=True)

    try:
        async with pool.transaction() as conn:
            rows, _ = await conn.execute("SELECT * FROM categories WHERE id = ?", [category_id])
            if not rows:
                raise HTTPException(status_code=404, detail="Category not found")

            existing = rows[0]
            new_name = fields.get("name") or existing["name"]
            values = {
                key: fields[key] if key in fields else existing[key]
                for key in ("description", "image_url", "color", "sort_order")
            }

            await conn.execute(
                "UPDATE categories SET name = ?, description = ?, image_url = ?, color = ?, "
                "sort_order = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                [
                    new_name, values["description"], values["image_url"],
                    values["color"], values["sort_order"], category_id,
                ],
            )

            renamed = 0
            if new_name != existing["name"]:
                header, _ = await conn.execute(
                    "UPDATE menu_items SET category = ?, category_id = ?, updated_at = CURRENT_TIMESTAMP "
                    "WHERE category_id = ? OR (restaurant_id = ? AND category = ?)",
                    [new_name, category_id, category_id, existing["restaurant_id"], existing["name"]],
                )
                renamed = header.affected_rows
    except IntegrityError:
        raise HTTPException(status_code=400, detail=DUPLICATE_MESSAGE)

    if renamed:
        logger.info(f"Category #{category_id} renamed, {renamed} menu items updated")
    return {"success": True, "message": "Category updated successfully"}


@router.delete("/{category_id}", summary="Delete category")
async def delete_category(
    category_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(can_manage_menu),
) -> dict[str, Any]:
    rows, _ = await pool.execute(
        "SELECT COUNT(*) AS count FROM menu_items WHERE category_id = ?", [category_id]
    )
    if int(rows[0]["count"]) > 0:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete category that is being used by menu items",
        )

    header, _ = await pool.execute("DELETE FROM categories WHERE id = ?", [category_id])
    if header.affected_rows == 0:
        raise HTTPException(status_code=404, detail="Category not found")

    return {"success": True, "message": "Category deleted successfully"}
