"""
Catalog query composition.

Turns untrusted listing parameters into a data query and a matching count
query. Every client-supplied value travels as a bound parameter. The only
identifiers that vary are the sort column and direction, and those come from
the closed ``SORT_COLUMNS`` mapping, never from the request text.

Nothing here touches the database; the functions are pure and safe to call
concurrently.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, bindparam, exists, func, or_, select
from sqlalchemy.sql import ColumnElement, Select

from digital_library.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from digital_library.models.book import Author, Book, Language, book_categories
from digital_library.schemas.books import BookStatus
from digital_library.schemas.context import AuthContext, user_of

SORT_COLUMNS = {
    "created_at": Book.created_at,
    "title": Book.title,
    "view_count": Book.view_count,
    "download_count": Book.download_count,
    "rating_avg": Book.rating_avg,
    "publish_year": Book.publish_year,
    "pages": Book.pages,
}
DEFAULT_SORT_BY = "created_at"
SORT_ORDERS = ("ASC", "DESC")
DEFAULT_SORT_ORDER = "DESC"

STATUS_ALL = "all"

MAX_OFFSET = 2 ** 63 - 1

LIST_COLUMNS = (
    Book.id,
    Book.title,
    Book.description,
    Book.isbn,
    Book.publisher,
    Book.publish_year,
    Book.pages,
    Book.file_format,
    Book.file_path,
    Book.cover_image,
    Book.download_count,
    Book.view_count,
    Book.rating_avg,
    Book.rating_count,
    Book.created_at,
    Book.status,
    Book.author_id,
    Book.language_id,
    Author.name.label("author_name"),
    Language.name.label("language_name"),
    Language.code.label("language_code"),
)


@dataclass(frozen=True)
class CatalogFilters:
    """Raw listing parameters as received from the client"""
    page: Any = 1
    limit: Any = DEFAULT_PAGE_SIZE
    category: Optional[int] = None
    language: Optional[int] = None
    author: Optional[int] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class CatalogQuery:
    data_query: Select
    count_query: Select
    page: int
    limit: int
    offset: int
    sort_by: str
    sort_order: str

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total > 0 else 0


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def normalize_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    """Clamp pagination to sane values; malformed input falls back to page 1 / default size"""
    page = _positive_int(page, 1)
    limit = min(_positive_int(limit, DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    # OFFSET is a signed 64-bit integer on every backend
    page = min(page, MAX_OFFSET // limit + 1)
    return page, limit


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[str, str]:
    key = sort_by if sort_by in SORT_COLUMNS else DEFAULT_SORT_BY
    order = sort_order.upper() if isinstance(sort_order, str) else ""
    if order not in SORT_ORDERS:
        order = DEFAULT_SORT_ORDER
    return key, order


def visibility_predicate(caller: AuthContext, requested_status: Optional[str]) -> ColumnElement:
    """
    Which book statuses the caller may list.

    Readers and anonymous callers only ever see active books, whatever they
    ask for. Admins see everything except deleted books by default, and may
    narrow to one explicit status.
    """
    user = user_of(caller)
    if user is None or not user.is_privileged:
        return Book.status == BookStatus.ACTIVE.value

    if requested_status and requested_status != STATUS_ALL:
        try:
            return Book.status == BookStatus(requested_status).value
        except ValueError:
            pass
    return Book.status != BookStatus.DELETED.value


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filter_predicates(filters: CatalogFilters, caller: AuthContext) -> List[ColumnElement]:
    predicates: List[ColumnElement] = [visibility_predicate(caller, filters.status)]

    search = (filters.search or "").strip()
    if search:
        pattern = bindparam("search", value=f"%{_escape_like(search)}%")
        predicates.append(
            or_(
                Book.title.ilike(pattern, escape="\\"),
                Author.name.ilike(pattern, escape="\\"),
            )
        )

    if filters.category is not None:
        predicates.append(
            exists().where(
                and_(
                    book_categories.c.book_id == Book.id,
                    book_categories.c.category_id == filters.category,
                )
            )
        )

    if filters.language is not None:
        predicates.append(Book.language_id == filters.language)

    if filters.author is not None:
        predicates.append(Book.author_id == filters.author)

    return predicates


def build_catalog_query(filters: CatalogFilters, caller: AuthContext) -> CatalogQuery:
    page, limit = normalize_pagination(filters.page, filters.limit)
    offset = (page - 1) * limit
    sort_by, sort_order = resolve_sort(filters.sort_by, filters.sort_order)
    predicates = filter_predicates(filters, caller)

    sort_column = SORT_COLUMNS[sort_by]
    if sort_order == "ASC":
        ordering = (sort_column.asc(), Book.id.asc())
    else:
        ordering = (sort_column.desc(), Book.id.desc())

    data_query = (
        select(*LIST_COLUMNS)
        .select_from(Book)
        .outerjoin(Author, Book.author_id == Author.id)
        .outerjoin(Language, Book.language_id == Language.id)
        .where(*predicates)
        .order_by(*ordering)
        .limit(limit)
        .offset(offset)
    )

    count_query = (
        select(func.count(Book.id))
        .select_from(Book)
        .outerjoin(Author, Book.author_id == Author.id)
        .where(*predicates)
    )

    return CatalogQuery(
        data_query=data_query,
        count_query=count_query,
        page=page,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
