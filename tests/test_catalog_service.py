import pytest

from digital_library.schemas.context import (ANONYMOUS, Authenticated,
                                             UserContext)
from digital_library.schemas.users import UserRole
from digital_library.services.catalog_query import CatalogFilters
from digital_library.services.catalog_service import catalog_service
from digital_library.utils.exceptions import BookNotFoundError

ADMIN = Authenticated(UserContext(user_id=99, role=UserRole.ADMIN))


@pytest.fixture
async def catalog(seed):
    temur = await seed.author("Temur Malik")
    navoiy = await seed.author("Alisher Navoiy")
    uz = await seed.language("O'zbek", "uz")
    ru = await seed.language("Русский", "ru")
    poetry = await seed.category("She'riyat", "poetry")
    history = await seed.category("Tarix", "history")

    books = {
        "t1": await seed.book("Saltanat", author_id=temur, language_id=uz, category_ids=[history]),
        "t2": await seed.book("Yurt", author_id=temur, language_id=ru, category_ids=[history]),
        "t3": await seed.book("Qal'a", author_id=temur, language_id=uz),
        "n1": await seed.book("Xamsa", author_id=navoiy, language_id=uz, category_ids=[poetry]),
        "n2": await seed.book("Temurnoma", author_id=navoiy, language_id=uz, status="inactive"),
        "n3": await seed.book("Lison ut-tayr", author_id=navoiy, language_id=uz, status="deleted"),
    }
    return {"books": books, "temur": temur, "uz": uz, "ru": ru, "poetry": poetry, "history": history}


async def list_books(db_manager, filters, caller=ANONYMOUS):
    async with db_manager.session_scope() as session:
        return await catalog_service.list_books(filters, caller, session)


async def test_search_by_author_name_pages_through_all_matches(db_manager, catalog):
    first = await list_books(db_manager, CatalogFilters(search="Temur", limit=2))

    assert len(first.books) == 2
    assert first.pagination.total_books == 3
    assert first.pagination.total_pages == 2
    assert first.pagination.current_page == 1

    second = await list_books(db_manager, CatalogFilters(search="temur", limit=2, page=2))
    assert len(second.books) == 3 % 2

    seen = [book.id for book in first.books + second.books]
    books = catalog["books"]
    assert sorted(seen) == sorted([books["t1"], books["t2"], books["t3"]])


@pytest.mark.parametrize("limit", [1, 2, 3, 4, 5])
async def test_last_page_size_matches_total(db_manager, catalog, limit):
    first = await list_books(db_manager, CatalogFilters(limit=limit))
    total = first.pagination.total_books
    last = await list_books(
        db_manager, CatalogFilters(limit=limit, page=first.pagination.total_pages)
    )
    assert len(last.books) == (total % limit or limit)


async def test_page_past_the_end_is_empty_but_keeps_totals(db_manager, catalog):
    page = await list_books(db_manager, CatalogFilters(limit=2, page=10))
    assert page.books == []
    assert page.pagination.total_books == 4
    assert page.pagination.total_pages == 2


async def test_anonymous_sees_only_active_books(db_manager, catalog):
    page = await list_books(db_manager, CatalogFilters(status="all"))
    assert {book.status.value for book in page.books} == {"active"}
    assert page.pagination.total_books == 4


async def test_admin_visibility(db_manager, catalog):
    books = catalog["books"]

    everything = await list_books(db_manager, CatalogFilters(status="all"), ADMIN)
    assert books["n2"] in [b.id for b in everything.books]
    assert books["n3"] not in [b.id for b in everything.books]

    inactive = await list_books(db_manager, CatalogFilters(status="inactive"), ADMIN)
    assert [b.id for b in inactive.books] == [books["n2"]]


async def test_filters_combine(db_manager, catalog):
    books = catalog["books"]

    by_category = await list_books(db_manager, CatalogFilters(category=catalog["history"]))
    assert sorted(b.id for b in by_category.books) == sorted([books["t1"], books["t2"]])

    by_language = await list_books(
        db_manager, CatalogFilters(category=catalog["history"], language=catalog["ru"])
    )
    assert [b.id for b in by_language.books] == [books["t2"]]
    assert by_language.books[0].category_ids == [catalog["history"]]
    assert by_language.books[0].author_name == "Temur Malik"
    assert by_language.books[0].language_code == "ru"


async def test_sort_by_title_ascending(db_manager, catalog):
    page = await list_books(db_manager, CatalogFilters(sort_by="title", sort_order="asc"))
    titles = [b.title for b in page.books]
    assert titles == sorted(titles)


async def test_get_book_counts_one_view(db_manager, seed, catalog):
    book_id = catalog["books"]["t1"]

    async with db_manager.session_scope() as session:
        detail = await catalog_service.get_book(book_id, session)

    assert detail.view_count == 0
    assert detail.author_name == "Temur Malik"
    assert [c.slug for c in detail.categories] == ["history"]
    assert (await seed.get_book(book_id)).view_count == 1


@pytest.mark.parametrize("key", ["n2", "n3"])
async def test_get_book_hides_non_active(db_manager, seed, catalog, key):
    book_id = catalog["books"][key]
    with pytest.raises(BookNotFoundError):
        async with db_manager.session_scope() as session:
            await catalog_service.get_book(book_id, session)
    assert (await seed.get_book(book_id)).view_count == 0


async def test_resources(db_manager, catalog):
    async with db_manager.session_scope() as session:
        resources = await catalog_service.get_resources(session)
    assert {language.code for language in resources.languages} == {"uz", "ru"}
    assert {category.slug for category in resources.categories} == {"poetry", "history"}
