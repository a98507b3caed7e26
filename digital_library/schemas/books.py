from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class BookStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class ReviewStatus(str, Enum):
    ACTIVE = "active"
    HIDDEN = "hidden"


class BookSummary(BaseModel):
    """Book as it appears in catalog listings"""
    id: int
    title: str
    description: Optional[str] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    pages: Optional[int] = None
    file_format: Optional[str] = None
    file_path: Optional[str] = None
    cover_image: Optional[str] = None
    download_count: int = 0
    view_count: int = 0
    rating_avg: float = 0.0
    rating_count: int = 0
    created_at: Optional[datetime] = None
    status: BookStatus
    author_id: Optional[int] = None
    language_id: Optional[int] = None
    author_name: Optional[str] = None
    language_name: Optional[str] = None
    language_code: Optional[str] = None
    category_ids: List[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class CategoryInfo(BaseModel):
    id: int
    name_uz: str
    name_ru: Optional[str] = None
    name_en: Optional[str] = None
    slug: str

    class Config:
        from_attributes = True


class LanguageInfo(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class BookDetail(BookSummary):
    """Single book with author and category details"""
    author_bio: Optional[str] = None
    categories: List[CategoryInfo] = Field(default_factory=list)


class Pagination(BaseModel):
    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total_books: int = Field(..., alias="totalBooks")
    limit: int

    class Config:
        populate_by_name = True


class BookListData(BaseModel):
    books: List[BookSummary]
    pagination: Pagination


class BookListResponse(BaseModel):
    success: bool = True
    data: BookListData


class BookDetailResponse(BaseModel):
    success: bool = True
    data: BookDetail


class ResourcesData(BaseModel):
    languages: List[LanguageInfo]
    categories: List[CategoryInfo]


class ResourcesResponse(BaseModel):
    success: bool = True
    data: ResourcesData


class LibraryAddRequest(BaseModel):
    book_id: int = Field(..., alias="bookId", description="Book to add")

    class Config:
        populate_by_name = True
        json_schema_extra = {"example": {"bookId": 42}}


class LibraryItem(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    rating_avg: float = 0.0
    rating_count: int = 0
    author_name: Optional[str] = None
    language_name: Optional[str] = None
    added_at: datetime


class LibraryResponse(BaseModel):
    success: bool = True
    data: List[LibraryItem]


class ReviewCreate(BaseModel):
    # Range is checked by the review service so the error carries a domain message
    rating: int = Field(..., description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=2000, description="Review text")

    class Config:
        json_schema_extra = {"example": {"rating": 5, "comment": "Ajoyib kitob"}}


class ReviewItem(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    user_name: str
    is_own_review: bool = False


class ReviewListResponse(BaseModel):
    success: bool = True
    data: List[ReviewItem]
