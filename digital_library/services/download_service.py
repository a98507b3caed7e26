"""
Download transaction pipeline.

A download is recorded as one unit: the history row, the counter increment
and the analytics event commit together or not at all. This module is the
only place that writes ``books.download_count`` or ``download_history``.
"""

import os
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import insert, select, update

from digital_library.config import STORAGE_ROOT
from digital_library.database import DatabaseManager
from digital_library.models.activity import AnalyticsEvent, DownloadRecord
from digital_library.models.book import Book
from digital_library.schemas.books import BookStatus
from digital_library.utils.exceptions import BookNotFoundError, FileMissingError

DOWNLOAD_EVENT = "download"


@dataclass(frozen=True)
class DownloadedFile:
    path: str
    filename: str
    media_type: Optional[str] = None


_MEDIA_TYPES = {
    "pdf": "application/pdf",
    "epub": "application/epub+zip",
    "djvu": "image/vnd.djvu",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain",
}


class DownloadService:
    def __init__(self, storage_root: str = STORAGE_ROOT):
        self.storage_root = os.path.abspath(storage_root)

    def resolve_file(self, file_path: str) -> Optional[str]:
        """Absolute location of a stored file, or None if it is missing or outside storage"""
        if not file_path:
            return None
        candidate = os.path.abspath(os.path.join(self.storage_root, file_path.lstrip("/\\")))
        if os.path.commonpath([candidate, self.storage_root]) != self.storage_root:
            logger.warning("Rejected file path outside storage root: {}", file_path)
            return None
        if not os.path.isfile(candidate):
            return None
        return candidate

    async def download_document(
        self,
        db: DatabaseManager,
        document_id: int,
        user_id: int,
        ip_address: Optional[str],
        user_agent: Optional[str] = None,
    ) -> DownloadedFile:
        """
        Record a download and return the file to stream.

        Raises ``BookNotFoundError`` (nothing written) when the book is absent
        or not active, ``TransactionFailure`` when storage fails mid-way
        (everything rolled back), and ``FileMissingError`` when the
        transaction committed but the file itself is not in storage.
        """
        async with db.transaction("download") as tx:
            result = await tx.execute(
                select(Book.title, Book.file_path, Book.file_format)
                .where(Book.id == document_id, Book.status == BookStatus.ACTIVE.value)
            )
            book = result.first()
            if book is None:
                raise BookNotFoundError()

            await tx.execute(
                insert(DownloadRecord).values(
                    user_id=user_id,
                    book_id=document_id,
                    ip_address=ip_address,
                )
            )
            # Relative increment so concurrent downloads cannot overwrite each other
            await tx.execute(
                update(Book)
                .where(Book.id == document_id)
                .values(download_count=Book.download_count + 1)
                .execution_options(synchronize_session=False)
            )
            await tx.execute(
                insert(AnalyticsEvent).values(
                    event_type=DOWNLOAD_EVENT,
                    user_id=user_id,
                    book_id=document_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )

        logger.info("Book {} downloaded by user {}", document_id, user_id)

        path = self.resolve_file(book.file_path)
        if path is None:
            logger.error(
                "Book {} has no file in storage (expected {})", document_id, book.file_path
            )
            raise FileMissingError()

        file_format = (book.file_format or "").lower()
        return DownloadedFile(
            path=path,
            filename=f"{book.title}.{file_format}",
            media_type=_MEDIA_TYPES.get(file_format, "application/octet-stream"),
        )


download_service = DownloadService()
