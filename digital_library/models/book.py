from sqlalchemy import (CheckConstraint, Column, DateTime, Float, ForeignKey,
                        Index, Integer, String, Table, Text, func)
from sqlalchemy.orm import relationship

from digital_library.schemas.base import Base

book_categories = Table(
    "book_categories",
    Base.metadata,
    Column("book_id", Integer, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    bio = Column(Text)


class Language(Base):
    __tablename__ = "languages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(10), unique=True, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name_uz = Column(String(255), nullable=False)
    name_ru = Column(String(255))
    name_en = Column(String(255))
    slug = Column(String(255), unique=True, nullable=False)


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    isbn = Column(String(20))
    publisher = Column(String(255))
    publish_year = Column(Integer)
    pages = Column(Integer)
    author_id = Column(Integer, ForeignKey("authors.id", ondelete="SET NULL"))
    language_id = Column(Integer, ForeignKey("languages.id", ondelete="SET NULL"))
    file_path = Column(String(1000), nullable=False)
    file_format = Column(String(20), nullable=False)
    cover_image = Column(String(1000))
    status = Column(String(20), default="active", nullable=False)

    # Written only by the view increment, the download pipeline and review aggregation
    view_count = Column(Integer, default=0, nullable=False)
    download_count = Column(Integer, default=0, nullable=False)
    rating_avg = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("Author")
    language = relationship("Language")
    categories = relationship("Category", secondary=book_categories)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive', 'deleted')", name="check_book_status"),
        CheckConstraint("download_count >= 0", name="check_download_count"),
        CheckConstraint("view_count >= 0", name="check_view_count"),
        Index("idx_books_status", "status"),
        Index("idx_books_created_at", "created_at"),
    )
