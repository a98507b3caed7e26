import pytest
from sqlalchemy import select

from digital_library.models import DownloadRecord
from digital_library.schemas.users import UserRole


@pytest.fixture
async def library(seed, storage):
    temur = await seed.author("Temur Malik")
    (storage / "books" / "saltanat.pdf").write_bytes(b"%PDF-1.4 saltanat")
    return {
        "saltanat": await seed.book("Saltanat", author_id=temur, file_path="books/saltanat.pdf"),
        "yurt": await seed.book("Yurt", author_id=temur),
        "qala": await seed.book("Qal'a", author_id=temur),
        "hidden": await seed.book("Yashirin", status="inactive"),
    }


@pytest.fixture
async def reader(seed):
    return await seed.user()


async def test_list_books_pagination_envelope(client, library):
    response = await client.get("/api/v1/books", params={"search": "Temur", "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]["books"]) == 2
    assert body["data"]["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalBooks": 3,
        "limit": 2,
    }


async def test_list_books_tolerates_bad_parameters(client, library):
    response = await client.get(
        "/api/v1/books",
        params={"page": "abc", "limit": "1000", "sortBy": "1; DROP TABLE books", "sortOrder": "up"},
    )

    assert response.status_code == 200
    pagination = response.json()["data"]["pagination"]
    assert pagination["currentPage"] == 1
    assert pagination["limit"] == 100
    assert pagination["totalBooks"] == 3


async def test_reader_cannot_widen_status(client, library, reader, headers_for):
    response = await client.get(
        "/api/v1/books", params={"status": "all"}, headers=headers_for(reader)
    )
    ids = [book["id"] for book in response.json()["data"]["books"]]
    assert library["hidden"] not in ids


async def test_admin_sees_inactive_books(client, library, seed, headers_for):
    admin = await seed.user(email="admin@kitob.uz", role=UserRole.ADMIN)
    response = await client.get(
        "/api/v1/books", params={"status": "all"}, headers=headers_for(admin)
    )
    ids = [book["id"] for book in response.json()["data"]["books"]]
    assert library["hidden"] in ids


async def test_book_detail_and_not_found(client, library):
    response = await client.get(f"/api/v1/books/{library['saltanat']}")
    assert response.status_code == 200
    assert response.json()["data"]["author_name"] == "Temur Malik"

    missing = await client.get(f"/api/v1/books/{library['hidden']}")
    assert missing.status_code == 404
    assert missing.json() == {
        "success": False,
        "error": "Book not found",
        "detail": None,
        "status_code": 404,
    }


async def test_non_numeric_book_id_is_a_validation_error(client):
    response = await client.get("/api/v1/books/abc")
    assert response.status_code == 422
    assert response.json()["error"] == "Validation Error"


async def test_download_requires_authentication(client, library, seed):
    response = await client.post(f"/api/v1/books/{library['saltanat']}/download")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert await seed.count(DownloadRecord) == 0


async def test_download_streams_file_and_counts(client, library, reader, seed, headers_for):
    response = await client.post(
        f"/api/v1/books/{library['saltanat']}/download", headers=headers_for(reader)
    )

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 saltanat"
    assert "Saltanat.pdf" in response.headers["content-disposition"]
    assert (await seed.get_book(library["saltanat"])).download_count == 1


async def test_download_of_inactive_book_is_not_found(client, library, reader, seed, headers_for):
    response = await client.post(
        f"/api/v1/books/{library['hidden']}/download", headers=headers_for(reader)
    )
    assert response.status_code == 404
    assert await seed.count(DownloadRecord) == 0


async def test_library_add_is_idempotent(client, library, reader, headers_for):
    headers = headers_for(reader)
    for _ in range(2):
        response = await client.post(
            "/api/v1/books/library", json={"bookId": library["yurt"]}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

    mine = await client.get("/api/v1/books/library/my", headers=headers)
    assert [item["id"] for item in mine.json()["data"]] == [library["yurt"]]

    removed = await client.delete(f"/api/v1/books/library/{library['yurt']}", headers=headers)
    assert removed.status_code == 200
    mine = await client.get("/api/v1/books/library/my", headers=headers)
    assert mine.json()["data"] == []


async def test_reviews(client, library, reader, seed, headers_for):
    url = f"/api/v1/books/{library['qala']}/review"

    bad = await client.post(url, json={"rating": 6}, headers=headers_for(reader))
    assert bad.status_code == 400

    for rating in (3, 5):
        ok = await client.post(url, json={"rating": rating, "comment": "Zo'r"}, headers=headers_for(reader))
        assert ok.status_code == 200

    book = await seed.get_book(library["qala"])
    assert (book.rating_avg, book.rating_count) == (5.0, 1)

    own = await client.get(f"/api/v1/books/{library['qala']}/reviews", headers=headers_for(reader))
    assert [r["is_own_review"] for r in own.json()["data"]] == [True]

    public = await client.get(f"/api/v1/books/{library['qala']}/reviews")
    assert [r["is_own_review"] for r in public.json()["data"]] == [False]


async def test_resources(client, seed):
    await seed.language("O'zbek", "uz")
    await seed.category("Tarix", "history")

    response = await client.get("/api/v1/books/resources")
    data = response.json()["data"]
    assert [language["code"] for language in data["languages"]] == ["uz"]
    assert [category["slug"] for category in data["categories"]] == ["history"]


async def test_huge_page_number_returns_an_empty_page(client, library):
    response = await client.get(
        "/api/v1/books", params={"page": "99999999999999999999", "limit": 20}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["books"] == []
    assert data["pagination"]["totalBooks"] == 3


async def test_download_ignores_bogus_forwarded_address(client, library, reader, db_manager, headers_for):
    headers = dict(headers_for(reader))
    headers["X-Forwarded-For"] = "not-an-ip-" + "x" * 200 + ", 10.0.0.1"

    response = await client.post(f"/api/v1/books/{library['saltanat']}/download", headers=headers)

    assert response.status_code == 200
    async with db_manager.session_scope() as session:
        record = (await session.execute(select(DownloadRecord))).scalar_one()
    assert record.ip_address == "127.0.0.1"
