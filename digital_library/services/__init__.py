from .analytics_service import analytics_service
from .auth_service import auth_service
from .catalog_service import catalog_service
from .download_service import download_service
from .library_service import library_service
from .review_service import review_service
from .token_service import token_service
from .user_service import user_service

__all__ = [
    "analytics_service",
    "auth_service",
    "catalog_service",
    "download_service",
    "library_service",
    "review_service",
    "token_service",
    "user_service",
]
