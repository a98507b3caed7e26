from .admin import router as admin_router
from .auth import router as auth_router
from .books import router as books_router
from .health import router as health_router
from .root import router as root_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "books_router",
    "health_router",
    "root_router",
    "users_router",
]
