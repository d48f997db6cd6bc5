"""
User Management Endpoints

Admin panel accounts. Managers may manage managers and viewers but never
touch admin accounts.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError

from app.routes.common import ERROR_RESPONSES
from app.routes.deps import ADMIN, require_manager
from app.schemas import UserCreate, UserUpdate
from app.services.dialect import CompatPool, get_pool

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses=ERROR_RESPONSES,
    dependencies=[Depends(require_manager)],
)

USER_COLUMNS = "id, username, role, full_name, email, is_active, created_at"
USERNAME_TAKEN = "Username already exists"


def _user_payload(row: dict[str, Any]) -> dict[str, Any]:
    user = dict(row)
    user["is_active"] = bool(user["is_active"])
    return user


async def _fetch_user(pool: CompatPool, user_id: int) -> dict[str, Any]:
    rows, _ = await pool.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", [user_id])
    if not rows:
        raise HTTPException(status_code=404, detail="User not found")
    return rows[0]


@router.get("/", summary="List users")
async def list_users(pool: CompatPool = Depends(get_pool)) -> dict[str, Any]:
    rows, _ = await pool.execute(
        f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"
    )
    return {"success": True, "users": [_user_payload(row) for row in rows]}


@router.post("/", summary="Create user")
async def create_user(
    user: UserCreate,
    pool: CompatPool = Depends(get_pool),
    current: dict = Depends(require_manager),
) -> dict[str, Any]:
    try:
        header, _ = await pool.execute(
            "INSERT INTO users (username, role, full_name, email) VALUES (?, ?, ?, ?)",
            [user.username.strip(), user.role.value, user.full_name, user.email],
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail=USERNAME_TAKEN)

    logger.info(f"User '{user.username}' ({user.role.value}) created by {current['username']}")
    return {
        "success": True,
        "message": "User created successfully",
        "user_id": header.insert_id,
    }


@router.put("/{user_id}", summary="Update user")
async def update_user(
    user_id: int,
    update: UserUpdate,
    pool: CompatPool = Depends(get_pool),
    current: dict = Depends(require_manager),
) -> dict[str, Any]:
    existing = await _fetch_user(pool, user_id)
    fields = update.model_dump(exclude_unset=True)

    if existing["role"] == ADMIN and current["role"] != ADMIN:
        raise HTTPException(status_code=403, detail="Managers cannot modify admin users")

    values = {
        key: fields[key] if fields.get(key) is not None else existing[key]
        for key in ("username", "role", "full_name", "email", "is_active")
    }
    if "full_name" in fields:
        values["full_name"] = fields["full_name"]
    if "email" in fields:
        values["email"] = fields["email"] or None
    role = values["role"]
    values["role"] = getattr(role, "value", role)

    try:
        await pool.execute(
            "UPDATE users SET username = ?, role = ?, full_name = ?, email = ?, "
            "is_active = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [
                values["username"], values["role"], values["full_name"],
                values["email"], bool(values["is_active"]), user_id,
            ],
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail=USERNAME_TAKEN)

    return {"success": True, "message": "User updated successfully"}


@router.delete("/{user_id}", summary="Delete user")
async def delete_user(
    user_id: int,
    pool: CompatPool = Depends(get_pool),
    current: dict = Depends(require_manager),
) -> dict[str, Any]:
    existing = await _fetch_user(pool, user_id)

    if existing["id"] == current["id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    if existing["role"] == ADMIN and current["role"] != ADMIN:
        raise HTTPException(status_code=403, detail="Managers cannot delete admin users")

    await pool.execute("DELETE FROM users WHERE id = ?", [user_id])
    logger.warning(f"User '{existing['username']}' deleted by {current['username']}")
    return {"success": True, "message": "User deleted successfully"}
