from typing import List

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.models.book import Author, Book, Language
from digital_library.models.library import LibraryEntry
from digital_library.schemas.books import BookStatus, LibraryItem
from digital_library.utils.exceptions import BookNotFoundError

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert(db: AsyncSession, table):
    """INSERT construct supporting ON CONFLICT for the session's backend"""
    dialect = db.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect](table)
    except KeyError:
        raise RuntimeError(f"ON CONFLICT inserts are not supported on {dialect}") from None


async def ensure_active_book(db: AsyncSession, book_id: int) -> None:
    found = await db.scalar(
        select(Book.id).where(Book.id == book_id, Book.status == BookStatus.ACTIVE.value)
    )
    if found is None:
        raise BookNotFoundError()


class LibraryService:
    async def add_to_library(self, user_id: int, book_id: int, db: AsyncSession) -> bool:
        """
        Add a book to the user's collection.

        Adding a book that is already there changes nothing. Returns True if a
        new entry was created.
        """
        await ensure_active_book(db, book_id)

        statement = (
            upsert_insert(db, LibraryEntry.__table__)
            .values(user_id=user_id, book_id=book_id)
            .on_conflict_do_nothing(index_elements=["user_id", "book_id"])
        )
        result = await db.execute(statement)
        await db.commit()

        created = result.rowcount == 1
        if created:
            logger.info("Book {} added to library of user {}", book_id, user_id)
        return created

    async def remove_from_library(self, user_id: int, book_id: int, db: AsyncSession) -> bool:
        result = await db.execute(
            delete(LibraryEntry).where(
                LibraryEntry.user_id == user_id, LibraryEntry.book_id == book_id
            )
        )
        await db.commit()
        return result.rowcount > 0

    async def get_user_library(self, user_id: int, db: AsyncSession) -> List[LibraryItem]:
        result = await db.execute(
            select(
                Book.id,
                Book.title,
                Book.description,
                Book.cover_image,
                Book.rating_avg,
                Book.rating_count,
                Author.name.label("author_name"),
                Language.name.label("language_name"),
                LibraryEntry.added_at,
            )
            .select_from(LibraryEntry)
            .join(Book, LibraryEntry.book_id == Book.id)
            .outerjoin(Author, Book.author_id == Author.id)
            .outerjoin(Language, Book.language_id == Language.id)
            .where(LibraryEntry.user_id == user_id, Book.status == BookStatus.ACTIVE.value)
            .order_by(LibraryEntry.added_at.desc(), LibraryEntry.id.desc())
        )
        return [LibraryItem(**row) for row in result.mappings().all()]


library_service = LibraryService()
