"""API routers, one per resource."""

from app.routes.admin import router as admin_router
from app.routes.auth import router as auth_router
from app.routes.categories import router as categories_router
from app.routes.feedback import router as feedback_router
from app.routes.menu import router as menu_router
from app.routes.qr import router as qr_router
from app.routes.users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "categories_router",
    "feedback_router",
    "menu_router",
    "qr_router",
    "users_router",
]
