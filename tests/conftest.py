import os

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret-0123456789abcdefghij"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret-0123456789abcdefghij"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("LOG_DIR", None)

from typing import Dict, Iterable, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, insert, select  # noqa: E402

from digital_library.database import DatabaseManager  # noqa: E402
from digital_library.main import create_app  # noqa: E402
from digital_library.models import (Author, Book, Category, Language,  # noqa: E402
                                    User, book_categories)
from digital_library.schemas.users import UserRole, UserStatus  # noqa: E402
from digital_library.services.auth_service import auth_service  # noqa: E402
from digital_library.services.download_service import download_service  # noqa: E402
from digital_library.services.token_service import token_service  # noqa: E402

DEFAULT_PASSWORD = "Kitob2026"


class Seeder:
    """Writes fixture rows, each call in its own committed session"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def user(
        self,
        email: str = "reader@kitob.uz",
        full_name: str = "Test Reader",
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.READER,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        async with self.db.session_scope() as session:
            user = User(
                email=email,
                full_name=full_name,
                password_hash=auth_service.get_password_hash(password),
                role=role.value,
                status=status.value,
            )
            session.add(user)
            await session.flush()
            await session.refresh(user)
        return user

    async def author(self, name: str, bio: Optional[str] = None) -> int:
        async with self.db.session_scope() as session:
            author = Author(name=name, bio=bio)
            session.add(author)
            await session.flush()
            return author.id

    async def language(self, name: str = "O'zbek", code: str = "uz") -> int:
        async with self.db.session_scope() as session:
            language = Language(name=name, code=code)
            session.add(language)
            await session.flush()
            return language.id

    async def category(self, name_uz: str, slug: str) -> int:
        async with self.db.session_scope() as session:
            category = Category(name_uz=name_uz, name_en=name_uz, slug=slug)
            session.add(category)
            await session.flush()
            return category.id

    async def book(
        self,
        title: str,
        author_id: Optional[int] = None,
        language_id: Optional[int] = None,
        status: str = "active",
        category_ids: Iterable[int] = (),
        file_path: Optional[str] = None,
        file_format: str = "pdf",
        **extra,
    ) -> int:
        async with self.db.session_scope() as session:
            book = Book(
                title=title,
                author_id=author_id,
                language_id=language_id,
                status=status,
                file_path=file_path or f"books/{title.lower().replace(' ', '_')}.{file_format}",
                file_format=file_format,
                **extra,
            )
            session.add(book)
            await session.flush()
            for category_id in category_ids:
                await session.execute(
                    insert(book_categories).values(book_id=book.id, category_id=category_id)
                )
            return book.id

    async def get_book(self, book_id: int) -> Book:
        async with self.db.session_scope() as session:
            return await session.get(Book, book_id)

    async def count(self, model) -> int:
        async with self.db.session_scope() as session:
            return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseManager(url=f"sqlite+aiosqlite:///{tmp_path / 'library.db'}", echo=False)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest.fixture
def seed(db_manager) -> Seeder:
    return Seeder(db_manager)


@pytest.fixture
def storage(tmp_path, monkeypatch):
    root = tmp_path / "storage"
    (root / "books").mkdir(parents=True)
    monkeypatch.setattr(download_service, "storage_root", str(root))
    return root


@pytest.fixture
async def client(db_manager):
    app = create_app(db_manager)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(user: User) -> Dict[str, str]:
    token = token_service.issue_access_token(user.id, UserRole(user.role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
