from collections import defaultdict
from typing import Dict, Iterable, List

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.models.book import (Author, Book, Category, Language,
                                         book_categories)
from digital_library.schemas.books import (BookDetail, BookListData,
                                           BookStatus, BookSummary,
                                           CategoryInfo, LanguageInfo,
                                           Pagination, ResourcesData)
from digital_library.schemas.context import AuthContext
from digital_library.services.catalog_query import (LIST_COLUMNS,
                                                    CatalogFilters,
                                                    build_catalog_query)
from digital_library.utils.exceptions import BookNotFoundError


class CatalogService:
    async def _category_ids(self, db: AsyncSession, book_ids: Iterable[int]) -> Dict[int, List[int]]:
        book_ids = list(book_ids)
        mapping: Dict[int, List[int]] = defaultdict(list)
        if not book_ids:
            return mapping
        result = await db.execute(
            select(book_categories.c.book_id, book_categories.c.category_id)
            .where(book_categories.c.book_id.in_(book_ids))
            .order_by(book_categories.c.category_id)
        )
        for book_id, category_id in result.all():
            mapping[book_id].append(category_id)
        return mapping

    async def list_books(
        self, filters: CatalogFilters, caller: AuthContext, db: AsyncSession
    ) -> BookListData:
        """One page of the catalog plus pagination totals"""
        query = build_catalog_query(filters, caller)

        total_books = await db.scalar(query.count_query) or 0
        rows = (await db.execute(query.data_query)).mappings().all()
        categories = await self._category_ids(db, (row["id"] for row in rows))

        books = [
            BookSummary(**row, category_ids=categories.get(row["id"], []))
            for row in rows
        ]
        logger.debug(
            "Catalog page {} (limit {}, sort {} {}): {} of {} books",
            query.page, query.limit, query.sort_by, query.sort_order, len(books), total_books,
        )
        return BookListData(
            books=books,
            pagination=Pagination(
                current_page=query.page,
                total_pages=query.total_pages(total_books),
                total_books=total_books,
                limit=query.limit,
            ),
        )

    async def get_book(self, book_id: int, db: AsyncSession) -> BookDetail:
        """
        Active book detail. Every successful fetch counts one view.
        """
        result = await db.execute(
            select(*LIST_COLUMNS, Author.bio.label("author_bio"))
            .select_from(Book)
            .outerjoin(Author, Book.author_id == Author.id)
            .outerjoin(Language, Book.language_id == Language.id)
            .where(Book.id == book_id, Book.status == BookStatus.ACTIVE.value)
        )
        row = result.mappings().first()
        if row is None:
            raise BookNotFoundError()

        category_rows = await db.execute(
            select(Category)
            .join(book_categories, book_categories.c.category_id == Category.id)
            .where(book_categories.c.book_id == book_id)
            .order_by(Category.id)
        )
        categories = [CategoryInfo.model_validate(c) for c in category_rows.scalars().all()]

        await db.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(view_count=Book.view_count + 1)
        )
        await db.commit()

        return BookDetail(
            **row,
            categories=categories,
            category_ids=[c.id for c in categories],
        )

    async def get_resources(self, db: AsyncSession) -> ResourcesData:
        """Languages and categories used by catalog filters"""
        languages = await db.execute(select(Language).order_by(Language.name))
        categories = await db.execute(select(Category).order_by(Category.name_uz))
        return ResourcesData(
            languages=[LanguageInfo.model_validate(item) for item in languages.scalars().all()],
            categories=[CategoryInfo.model_validate(item) for item in categories.scalars().all()],
        )


catalog_service = CatalogService()
