from digital_library.schemas.users import UserRole
from digital_library.services.download_service import download_service


async def test_analytics_requires_an_admin(client, seed, headers_for):
    reader = await seed.user()

    anonymous = await client.get("/api/v1/admin/analytics")
    assert anonymous.status_code == 401

    forbidden = await client.get("/api/v1/admin/analytics", headers=headers_for(reader))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "Insufficient permissions"


async def test_analytics_dashboard(client, seed, db_manager, storage, headers_for):
    admin = await seed.user(email="admin@kitob.uz", full_name="Admin", role=UserRole.ADMIN)
    reader = await seed.user(full_name="Kitobxon")
    (storage / "books" / "xamsa.pdf").write_bytes(b"%PDF")
    book_id = await seed.book("Xamsa", file_path="books/xamsa.pdf")
    await seed.book("O'chirilgan", status="deleted")
    await download_service.download_document(db_manager, book_id, reader.id, "10.0.0.1")

    response = await client.get("/api/v1/admin/analytics", headers=headers_for(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["stats"]["total_books"] == 1
    assert data["stats"]["total_users"] == 2
    assert data["stats"]["total_downloads"] == 1
    assert [(d["full_name"], d["title"]) for d in data["recent_downloads"]] == [("Kitobxon", "Xamsa")]


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    startup = await client.get("/health/startup")
    assert startup.status_code == 200


async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.json()["success"] is False
