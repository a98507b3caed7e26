from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.api.dependencies import get_auth_context, require_user
from digital_library.database import DatabaseManager, get_db, get_db_manager
from digital_library.schemas.base import StandardResponse
from digital_library.schemas.books import (BookDetailResponse,
                                           BookListResponse,
                                           LibraryAddRequest, LibraryResponse,
                                           ResourcesResponse, ReviewCreate,
                                           ReviewListResponse)
from digital_library.schemas.context import AuthContext, UserContext
from digital_library.services.catalog_query import CatalogFilters
from digital_library.services.catalog_service import catalog_service
from digital_library.services.download_service import download_service
from digital_library.services.library_service import library_service
from digital_library.services.review_service import review_service
from digital_library.utils.security import get_client_ip, get_user_agent

router = APIRouter(tags=["Books"], prefix="/books")


@router.get(
    "",
    response_model=BookListResponse,
    summary="List books with filters and pagination",
)
async def list_books(
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Books per page"),
    category: Optional[int] = Query(None, description="Category id"),
    language: Optional[int] = Query(None, description="Language id"),
    author: Optional[int] = Query(None, description="Author id"),
    search: Optional[str] = Query(None, description="Substring of title or author name"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    book_status: Optional[str] = Query(None, alias="status", description="Admins only: 'all' or a status"),
    caller: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Public catalog; a valid admin token widens which statuses are visible"""
    filters = CatalogFilters(
        page=page,
        limit=limit,
        category=category,
        language=language,
        author=author,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        status=book_status,
    )
    data = await catalog_service.list_books(filters, caller, db)
    return BookListResponse(data=data)


@router.get(
    "/resources",
    response_model=ResourcesResponse,
    summary="Languages and categories for catalog filters",
)
async def get_resources(db: AsyncSession = Depends(get_db)):
    return ResourcesResponse(data=await catalog_service.get_resources(db))


@router.post(
    "/library",
    response_model=StandardResponse,
    summary="Add a book to my library",
)
async def add_to_library(
    payload: LibraryAddRequest,
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    created = await library_service.add_to_library(user.user_id, payload.book_id, db)
    return StandardResponse(
        success=True,
        message="Book added to library" if created else "Book is already in library",
        data={"book_id": payload.book_id},
    )


@router.get(
    "/library/my",
    response_model=LibraryResponse,
    summary="My library",
)
async def get_my_library(
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return LibraryResponse(data=await library_service.get_user_library(user.user_id, db))


@router.delete(
    "/library/{book_id}",
    response_model=StandardResponse,
    summary="Remove a book from my library",
)
async def remove_from_library(
    book_id: int,
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await library_service.remove_from_library(user.user_id, book_id, db)
    return StandardResponse(
        success=True,
        message="Book removed from library" if removed else "Book was not in library",
        data={"book_id": book_id},
    )


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book by ID",
    responses={404: {"description": "Book not found or not active"}},
)
async def get_book(book_id: int, db: AsyncSession = Depends(get_db)):
    return BookDetailResponse(data=await catalog_service.get_book(book_id, db))


@router.post(
    "/{book_id}/download",
    response_class=FileResponse,
    summary="Download a book",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Book or file not found"},
    },
)
async def download_book(
    book_id: int,
    request: Request,
    user: UserContext = Depends(require_user),
    db: DatabaseManager = Depends(get_db_manager),
):
    downloaded = await download_service.download_document(
        db,
        book_id,
        user.user_id,
        await get_client_ip(request),
        get_user_agent(request),
    )
    return FileResponse(
        downloaded.path,
        filename=downloaded.filename,
        media_type=downloaded.media_type,
    )


@router.get(
    "/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="Reviews for a book",
)
async def get_reviews(
    book_id: int,
    caller: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    return ReviewListResponse(data=await review_service.list_reviews(book_id, caller, db))


@router.post(
    "/{book_id}/review",
    response_model=StandardResponse,
    status_code=status.HTTP_200_OK,
    summary="Add or update my review",
)
async def add_review(
    book_id: int,
    review: ReviewCreate,
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await review_service.add_review(book_id, user.user_id, review.rating, review.comment, db)
    return StandardResponse(success=True, message="Review saved", data={"book_id": book_id})
