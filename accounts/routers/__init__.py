"""API routers."""

from accounts.routers.auth import router as auth_router
from accounts.routers.images import router as images_router
from accounts.routers.users import router as users_router

__all__ = ["auth_router", "images_router", "users_router"]
