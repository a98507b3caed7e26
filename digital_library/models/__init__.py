from .activity import AnalyticsEvent, DownloadRecord
from .book import Author, Book, Category, Language, book_categories
from .library import LibraryEntry, Review
from .user import User

__all__ = [
    "AnalyticsEvent",
    "Author",
    "Book",
    "Category",
    "DownloadRecord",
    "Language",
    "LibraryEntry",
    "Review",
    "User",
    "book_categories",
]
