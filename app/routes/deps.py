"""
API dependency helpers.

Resolves the acting admin user and enforces role gates.

Identity is asserted by the auth proxy in front of the API through the
``X-Auth-Request-User`` header and must match an active row in ``users``.
"""

import logging
from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, status

from app.services.dialect import CompatPool, get_pool

logger = logging.getLogger(__name__)

ADMIN = "admin"
MANAGER = "manager"
VIEWER = "viewer"


# Contract:
# Returns the users row as a dict (id, username, role, full_name, email).
# Raises 401 if identity cannot be resolved.

async def get_current_user(
    pool: CompatPool = Depends(get_pool),
    x_auth_request_user: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    username = (x_auth_request_user or "").strip()
    if not username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No identity provided.",
        )

    rows, _ = await pool.execute(
        "SELECT id, username, role, full_name, email FROM users "
        "WHERE username = ? AND is_active = TRUE",
        [username],
    )
    if not rows:
        logger.warning(f"Rejected unknown or inactive user '{username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. Unknown or inactive user.",
        )
    return rows[0]


def require_roles(*roles: str, message: str):
    """Build a dependency that lets only ``roles`` through."""

    async def _check(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
        if user["role"] not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return user

    return _check


require_admin = require_roles(ADMIN, message="Access denied. Admin role required.")

require_manager = require_roles(
    ADMIN, MANAGER, message="Access denied. Manager role or higher required."
)

require_viewer = require_roles(
    ADMIN, MANAGER, VIEWER, message="Access denied. Valid user role required."
)

can_manage_menu = require_roles(
    ADMIN, MANAGER, VIEWER,
    message="Access denied. Valid user role required to manage menu items.",
)

can_add_restaurant = require_roles(
    ADMIN, MANAGER,
    message="Access denied. Manager role or higher required to add restaurants.",
)

can_delete_restaurant = require_roles(
    ADMIN, MANAGER,
    message="Access denied. Manager role or higher required to delete restaurants.",
)
