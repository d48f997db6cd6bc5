"""Identity check used by the admin panel after login at the proxy."""

from typing import Any

from fastapi import APIRouter, Depends

from app.routes.common import ERROR_RESPONSES
from app.routes.deps import get_current_user

router = APIRouter(prefix="/api/auth", tags=["Auth"], responses=ERROR_RESPONSES)


@router.get("/verify", summary="Resolve the acting user")
async def verify(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    return {"valid": True, "user": user}
