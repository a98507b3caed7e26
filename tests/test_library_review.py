from types import SimpleNamespace

import pytest

from digital_library.models import LibraryEntry, Review
from digital_library.schemas.context import (ANONYMOUS, Authenticated,
                                             UserContext)
from digital_library.schemas.users import UserRole
from digital_library.services.library_service import (library_service,
                                                      upsert_insert)
from digital_library.services.review_service import (review_service,
                                                     validate_rating)
from digital_library.utils.exceptions import (BookNotFoundError,
                                              ValidationError)


@pytest.fixture
async def reader(seed):
    return await seed.user(full_name="Kitobxon")


@pytest.fixture
async def book_id(seed):
    return await seed.book("O'tkan kunlar")


async def test_adding_twice_keeps_one_entry(db_manager, seed, reader, book_id):
    async with db_manager.session_scope() as session:
        assert await library_service.add_to_library(reader.id, book_id, session) is True
    async with db_manager.session_scope() as session:
        assert await library_service.add_to_library(reader.id, book_id, session) is False
        items = await library_service.get_user_library(reader.id, session)

    assert [item.id for item in items] == [book_id]
    assert await seed.count(LibraryEntry) == 1


async def test_library_rejects_inactive_books(db_manager, seed, reader):
    hidden = await seed.book("Yashirin", status="inactive")
    with pytest.raises(BookNotFoundError):
        async with db_manager.session_scope() as session:
            await library_service.add_to_library(reader.id, hidden, session)
    assert await seed.count(LibraryEntry) == 0


async def test_remove_from_library(db_manager, reader, book_id):
    async with db_manager.session_scope() as session:
        await library_service.add_to_library(reader.id, book_id, session)
    async with db_manager.session_scope() as session:
        assert await library_service.remove_from_library(reader.id, book_id, session) is True
        assert await library_service.remove_from_library(reader.id, book_id, session) is False
        assert await library_service.get_user_library(reader.id, session) == []


async def test_second_review_replaces_the_first(db_manager, seed, reader, book_id):
    async with db_manager.session_scope() as session:
        await review_service.add_review(book_id, reader.id, 4, "Yaxshi", session)
    async with db_manager.session_scope() as session:
        await review_service.add_review(book_id, reader.id, 2, "O'rtacha", session)

    assert await seed.count(Review) == 1
    book = await seed.get_book(book_id)
    assert (book.rating_avg, book.rating_count) == (2.0, 1)

    other = await seed.user(email="other@kitob.uz", full_name="Boshqa")
    async with db_manager.session_scope() as session:
        await review_service.add_review(book_id, other.id, 5, None, session)

    book = await seed.get_book(book_id)
    assert book.rating_avg == pytest.approx(3.5)
    assert book.rating_count == 2


@pytest.mark.parametrize("rating", [0, 6, -1, True, "5", 4.5, None])
def test_rating_must_be_an_integer_from_one_to_five(rating):
    with pytest.raises(ValidationError):
        validate_rating(rating)


async def test_invalid_rating_writes_nothing(db_manager, seed, reader, book_id):
    with pytest.raises(ValidationError):
        async with db_manager.session_scope() as session:
            await review_service.add_review(book_id, reader.id, 6, None, session)
    assert await seed.count(Review) == 0


async def test_review_on_missing_book(db_manager, reader):
    with pytest.raises(BookNotFoundError):
        async with db_manager.session_scope() as session:
            await review_service.add_review(4242, reader.id, 3, None, session)


async def test_reviews_mark_the_callers_own(db_manager, seed, reader, book_id):
    other = await seed.user(email="other@kitob.uz", full_name="Boshqa")
    async with db_manager.session_scope() as session:
        await review_service.add_review(book_id, reader.id, 5, "Zo'r", session)
        await review_service.add_review(book_id, other.id, 3, None, session)

    caller = Authenticated(UserContext(user_id=reader.id, role=UserRole.READER))
    async with db_manager.session_scope() as session:
        mine = await review_service.list_reviews(book_id, caller, session)
        anonymous = await review_service.list_reviews(book_id, ANONYMOUS, session)

    assert {(r.user_name, r.is_own_review) for r in mine} == {("Kitobxon", True), ("Boshqa", False)}
    assert not any(r.is_own_review for r in anonymous)


def test_upsert_insert_requires_a_supported_backend():
    session = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="mysql")))
    with pytest.raises(RuntimeError):
        upsert_insert(session, LibraryEntry.__table__)
