"""
QR Endpoint

Resolves a restaurant slug to the public menu URL the admin panel renders
as a QR code.
"""

from typing import Any

from fastapi import APIRouter, Depends

from app.core.config import get_settings
from app.routes.common import ERROR_RESPONSES, fetch_restaurant_by_slug, restaurant_summary
from app.services.dialect import CompatPool, get_pool

router = APIRouter(prefix="/api/qr", tags=["QR"], responses=ERROR_RESPONSES)


@router.get("/{slug}", summary="Menu URL for a QR code")
async def menu_qr(slug: str, pool: CompatPool = Depends(get_pool)) -> dict[str, Any]:
    restaurant = await fetch_restaurant_by_slug(pool, slug)
    return {
        "success": True,
        "restaurant": restaurant_summary(restaurant),
        "menu_url": get_settings().menu_url(slug),
    }
