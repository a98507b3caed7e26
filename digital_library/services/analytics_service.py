from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.models.activity import DownloadRecord
from digital_library.models.book import Book
from digital_library.models.user import User
from digital_library.schemas.admin import (AnalyticsData, CatalogStats,
                                           RecentDownload)
from digital_library.schemas.books import BookStatus
from digital_library.schemas.users import UserStatus

RECENT_DOWNLOADS_LIMIT = 10
NEW_USER_WINDOW = timedelta(days=30)


class AnalyticsService:
    async def get_dashboard(self, db: AsyncSession) -> AnalyticsData:
        """Usage summary for the admin dashboard"""
        since = datetime.now(timezone.utc) - NEW_USER_WINDOW

        total_books = await db.scalar(
            select(func.count(Book.id)).where(Book.status != BookStatus.DELETED.value)
        )
        total_users = await db.scalar(
            select(func.count(User.id)).where(User.status != UserStatus.DELETED.value)
        )
        total_downloads = await db.scalar(select(func.count(DownloadRecord.id)))
        new_users = await db.scalar(
            select(func.count(User.id)).where(
                User.status != UserStatus.DELETED.value, User.created_at >= since
            )
        )

        recent = await db.execute(
            select(
                User.full_name,
                Book.title,
                DownloadRecord.downloaded_at,
            )
            .select_from(DownloadRecord)
            .join(User, DownloadRecord.user_id == User.id)
            .join(Book, DownloadRecord.book_id == Book.id)
            .order_by(DownloadRecord.downloaded_at.desc(), DownloadRecord.id.desc())
            .limit(RECENT_DOWNLOADS_LIMIT)
        )

        return AnalyticsData(
            stats=CatalogStats(
                total_books=total_books or 0,
                total_users=total_users or 0,
                total_downloads=total_downloads or 0,
                new_users_month=new_users or 0,
            ),
            recent_downloads=[RecentDownload(**row) for row in recent.mappings().all()],
        )


analytics_service = AnalyticsService()
