from .admin import AnalyticsData, AnalyticsResponse, CatalogStats, RecentDownload
from .auth import LoginResponse, RefreshTokenRequest, Token, UserLogin
from .base import Base, ErrorResponse, StandardResponse
from .books import (BookDetail, BookDetailResponse, BookListData,
                    BookListResponse, BookStatus, BookSummary, CategoryInfo,
                    LanguageInfo, LibraryAddRequest, LibraryItem,
                    LibraryResponse, Pagination, ResourcesData,
                    ResourcesResponse, ReviewCreate, ReviewItem,
                    ReviewListResponse, ReviewStatus)
from .health import HealthResponse, SimpleHealthResponse
from .users import (PasswordChange, UserCreate, UserResponse, UserRole,
                    UserStatus, UserUpdate)

__all__ = [
    # Base schemas
    'Base', 'StandardResponse', 'ErrorResponse',

    # Auth schemas
    'Token', 'LoginResponse', 'UserLogin', 'RefreshTokenRequest',

    # User schemas
    'UserRole', 'UserStatus', 'UserCreate', 'UserUpdate', 'UserResponse',
    'PasswordChange',

    # Book schemas
    'BookStatus', 'ReviewStatus', 'BookSummary', 'BookDetail', 'CategoryInfo',
    'LanguageInfo', 'Pagination', 'BookListData', 'BookListResponse',
    'BookDetailResponse', 'ResourcesData', 'ResourcesResponse',
    'LibraryAddRequest', 'LibraryItem', 'LibraryResponse', 'ReviewCreate',
    'ReviewItem', 'ReviewListResponse',

    # Admin schemas
    'CatalogStats', 'RecentDownload', 'AnalyticsData', 'AnalyticsResponse',

    # Health schemas
    'HealthResponse', 'SimpleHealthResponse',
]
