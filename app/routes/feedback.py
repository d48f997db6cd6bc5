"""
Guest Feedback Endpoints

Guests submit four 1-5 ratings from the public menu; admins list, summarise
and delete them.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.routes.common import ERROR_RESPONSES, as_float, fetch_restaurant_by_id
from app.routes.deps import require_admin
from app.schemas import FeedbackCreate
from app.services.dialect import CompatPool, get_pool

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["Feedback"], responses=ERROR_RESPONSES)

MEAN_RATING_SQL = "((food_quality + service + ambiance + pricing) / 4.0)"

DISTRIBUTION_BUCKETS = [
    ("five_star", f"{MEAN_RATING_SQL} >= 4.5"),
    ("four_star", f"{MEAN_RATING_SQL} >= 3.5 AND {MEAN_RATING_SQL} < 4.5"),
    ("three_star", f"{MEAN_RATING_SQL} >= 2.5 AND {MEAN_RATING_SQL} < 3.5"),
    ("two_star", f"{MEAN_RATING_SQL} >= 1.5 AND {MEAN_RATING_SQL} < 2.5"),
    ("one_star", f"{MEAN_RATING_SQL} < 1.5"),
]


def date_range_filter(
    start_date: Optional[date], end_date: Optional[date]
) -> tuple[str, list[Any]]:
    """SQL fragment and params for an inclusive date range on ``created_at``."""
    sql = ""
    params: list[Any] = []
    if start_date:
        sql += " AND created_at >= ?"
        params.append(datetime.combine(start_date, time.min))
    if end_date:
        sql += " AND created_at <= ?"
        params.append(datetime.combine(end_date, time(23, 59, 59)))
    return sql, params


def _round(value: Any, digits: int = 2) -> Optional[float]:
    value = as_float(value)
    return round(value, digits) if value is not None else None


@router.post("/submit", summary="Submit feedback")
async def submit_feedback(
    feedback: FeedbackCreate,
    pool: CompatPool = Depends(get_pool),
) -> dict[str, Any]:
    """Public endpoint, no identity required."""
    await fetch_restaurant_by_id(pool, feedback.restaurant_id)

    header, _ = await pool.execute(
        "INSERT INTO feedback "
        "(restaurant_id, phone_number, food_quality, service, ambiance, pricing, comments) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            feedback.restaurant_id, feedback.phone_number, feedback.food_quality,
            feedback.service, feedback.ambiance, feedback.pricing, feedback.comments,
        ],
    )

    logger.info(
        f"Feedback #{header.insert_id} received for restaurant {feedback.restaurant_id} "
        f"(phone: {'yes' if feedback.phone_number else 'no'})"
    )
    return {
        "success": True,
        "message": "Thank you for your feedback!",
        "feedback_id": header.insert_id,
    }


@router.get("/restaurant/{restaurant_id}", summary="List feedback")
async def list_feedback(
    restaurant_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    """Feedback for one restaurant, newest first."""
    range_sql, params = date_range_filter(start_date, end_date)
    sql = "SELECT * FROM feedback WHERE restaurant_id = ?" + range_sql
    params = [restaurant_id, *params]

    if min_rating is not None:
        sql += f" AND {MEAN_RATING_SQL} >= ?"
        params.append(Decimal(str(min_rating)))

    sql += " ORDER BY created_at DESC, id DESC"

    rows, _ = await pool.execute(sql, params)
    return {"success": True, "feedback": rows, "count": len(rows)}


@router.get("/stats/{restaurant_id}", summary="Feedback statistics")
async def feedback_stats(
    restaurant_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    range_sql, range_params = date_range_filter(start_date, end_date)
    params = [restaurant_id, *range_params]

    stats_rows, _ = await pool.execute(
        "SELECT COUNT(*) AS total_reviews, "
        "AVG(food_quality) AS avg_food_quality, "
        "AVG(service) AS avg_service, "
        "AVG(ambiance) AS avg_ambiance, "
        "AVG(pricing) AS avg_pricing, "
        f"AVG{MEAN_RATING_SQL} AS overall_rating, "
        "MIN(created_at) AS first_review, "
        "MAX(created_at) AS latest_review "
        "FROM feedback WHERE restaurant_id = ?" + range_sql,
        params,
    )

    bucket_sql = ", ".join(
        f"SUM(CASE WHEN {condition} THEN 1 ELSE 0 END) AS {name}"
        for name, condition in DISTRIBUTION_BUCKETS
    )
    distribution_rows, _ = await pool.execute(
        f"SELECT {bucket_sql} FROM feedback WHERE restaurant_id = ?" + range_sql,
        params,
    )

    raw = stats_rows[0]
    stats = {
        "total_reviews": int(raw["total_reviews"] or 0),
        "avg_food_quality": _round(raw["avg_food_quality"]),
        "avg_service": _round(raw["avg_service"]),
        "avg_ambiance": _round(raw["avg_ambiance"]),
        "avg_pricing": _round(raw["avg_pricing"]),
        "overall_rating": _round(raw["overall_rating"]),
        "first_review": raw["first_review"],
        "latest_review": raw["latest_review"],
    }
    distribution = {
        name: int(distribution_rows[0][name] or 0) for name, _ in DISTRIBUTION_BUCKETS
    }

    return {"success": True, "stats": stats, "distribution": distribution}


@router.delete("/restaurant/{restaurant_id}/all", summary="Delete all feedback of a restaurant")
async def delete_all_feedback(
    restaurant_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    """
    Delete every review of one restaurant. When no feedback remains in
    the table at all, the id sequence restarts at 1.
    """
    async with pool.transaction() as conn:
        header, _ = await conn.execute(
            "DELETE FROM feedback WHERE restaurant_id = ?", [restaurant_id]
        )
        rows, _ = await conn.execute("SELECT COUNT(*) AS count FROM feedback")
        sequence_reset = int(rows[0]["count"]) == 0
        if sequence_reset:
            await conn.reset_identity("feedback")

    logger.info(
        f"Deleted {header.affected_rows} feedback rows for restaurant {restaurant_id} "
        f"by {user['username']}"
    )
    message = "All feedback deleted successfully"
    if sequence_reset:
        message += " and ID sequence reset to 1"
    return {
        "success": True,
        "message": message,
        "deleted": header.affected_rows,
        "sequence_reset": sequence_reset,
    }


@router.delete("/{feedback_id}", summary="Delete feedback")
async def delete_feedback(
    feedback_id: int,
    pool: CompatPool = Depends(get_pool),
    user: dict = Depends(require_admin),
) -> dict[str, Any]:
    header, _ = await pool.execute("DELETE FROM feedback WHERE id = ?", [feedback_id])
    if header.affected_rows == 0:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return {"success": True, "message": "Feedback deleted successfully"}
