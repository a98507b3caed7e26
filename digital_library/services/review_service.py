from typing import List, Optional

from loguru import logger
from sqlalchemy import func, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.models.book import Book
from digital_library.models.library import Review
from digital_library.models.user import User
from digital_library.schemas.books import ReviewItem, ReviewStatus
from digital_library.schemas.context import AuthContext, user_of
from digital_library.services.library_service import (ensure_active_book,
                                                      upsert_insert)
from digital_library.utils.exceptions import ValidationError

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be a whole number from 1 to 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


class ReviewService:
    async def add_review(
        self,
        book_id: int,
        user_id: int,
        rating: int,
        comment: Optional[str],
        db: AsyncSession,
    ) -> None:
        """Create the user's review of a book, or replace the one they already wrote"""
        rating = validate_rating(rating)
        await ensure_active_book(db, book_id)

        table = Review.__table__
        statement = upsert_insert(db, table).values(
            user_id=user_id,
            book_id=book_id,
            rating=rating,
            comment=comment,
            status=ReviewStatus.ACTIVE.value,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["user_id", "book_id"],
            set_={
                "rating": statement.excluded.rating,
                "comment": statement.excluded.comment,
                "updated_at": func.now(),
            },
        )
        await db.execute(statement)
        await self.refresh_rating_aggregate(book_id, db)
        await db.commit()
        logger.info("Review by user {} saved for book {} (rating {})", user_id, book_id, rating)

    async def refresh_rating_aggregate(self, book_id: int, db: AsyncSession) -> None:
        """Recompute rating_avg / rating_count from the book's active reviews"""
        active = (Review.book_id == book_id) & (Review.status == ReviewStatus.ACTIVE.value)
        average = (
            select(func.coalesce(func.avg(Review.rating), 0.0)).where(active).scalar_subquery()
        )
        count = select(func.count(Review.id)).where(active).scalar_subquery()
        await db.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(rating_avg=average, rating_count=count)
            .execution_options(synchronize_session=False)
        )

    async def list_reviews(
        self, book_id: int, caller: AuthContext, db: AsyncSession
    ) -> List[ReviewItem]:
        user = user_of(caller)
        if user is not None:
            own_review = Review.user_id == user.user_id
        else:
            own_review = literal(False)

        result = await db.execute(
            select(
                Review.id,
                Review.rating,
                Review.comment,
                Review.created_at,
                User.full_name.label("user_name"),
                own_review.label("is_own_review"),
            )
            .join(User, Review.user_id == User.id)
            .where(Review.book_id == book_id, Review.status == ReviewStatus.ACTIVE.value)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return [ReviewItem(**row) for row in result.mappings().all()]


review_service = ReviewService()
