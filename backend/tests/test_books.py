"""
BookCourier Backend — Book Endpoint Tests
===========================================

What we test:
    ✅ Public catalogue only exposes published books
    ✅ /latestbooks ordering and limit
    ✅ /book/{id}: any status, 404 for unknown ids, 400 for malformed ids
    ✅ Listing creation: ownership and timestamps are server-assigned
    ✅ Updates only touch books the caller owns
    ✅ Admin moderation and cascading delete
"""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from conftest import ADMIN, LIBRARIAN, OTHER_LIBRARIAN


class TestPublicCatalogue:

    @pytest.mark.asyncio
    async def test_allbooks_only_published(self, test_client, add_book):
        await add_book(title="Published One")
        await add_book(title="Pending One", status="pending")
        await add_book(title="Rejected One", status="unpublished")

        response = await test_client.get("/allbooks")

        assert response.status_code == 200
        assert [book["title"] for book in response.json()] == ["Published One"]

    @pytest.mark.asyncio
    async def test_allbooks_empty_catalogue(self, test_client):
        response = await test_client.get("/allbooks")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_latest_books_newest_first_and_limited(self, test_client, add_book):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for day in range(8):
            await add_book(title=f"Book {day}", added_at=base + timedelta(days=day))
        await add_book(title="Newest but pending", status="pending", added_at=base + timedelta(days=30))

        response = await test_client.get("/latestbooks")

        assert response.status_code == 200
        titles = [book["title"] for book in response.json()]
        assert titles == [f"Book {day}" for day in range(7, 1, -1)]

    @pytest.mark.asyncio
    async def test_get_book_any_status(self, test_client, add_book):
        book_id = await add_book(title="Still Pending", status="pending", author="A. Writer")

        response = await test_client.get(f"/book/{book_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["_id"] == str(book_id)
        assert data["title"] == "Still Pending"
        assert data["author"] == "A. Writer"

    @pytest.mark.asyncio
    async def test_get_unknown_book_is_404(self, test_client):
        response = await test_client.get(f"/book/{ObjectId()}")
        assert response.status_code == 404
        assert response.json() == {"message": "Book not found"}

    @pytest.mark.asyncio
    async def test_get_malformed_id_is_400(self, test_client):
        response = await test_client.get("/book/12345")
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid id"}


class TestLibrarianBooks:

    @pytest.mark.asyncio
    async def test_create_book_assigns_owner(self, test_client, bearer, mongo_db):
        response = await test_client.post(
            "/books",
            json={"title": "Dune", "author": "Frank Herbert", "price": "$9.99"},
            headers=bearer("librarian-token"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        stored = await mongo_db["books"].find_one({"_id": ObjectId(body["insertedId"])})
        assert stored["addedBy"] == LIBRARIAN
        assert stored["author"] == "Frank Herbert"
        assert stored["price"] == "$9.99"
        assert stored["status"] == "pending"
        assert stored["addedAt"] is not None

    @pytest.mark.asyncio
    async def test_create_book_ignores_client_owner(self, test_client, bearer, mongo_db):
        response = await test_client.post(
            "/books",
            json={"title": "Spoofed", "addedBy": OTHER_LIBRARIAN, "addedAt": "1999-01-01"},
            headers=bearer("librarian-token"),
        )

        stored = await mongo_db["books"].find_one({"_id": ObjectId(response.json()["insertedId"])})
        assert stored["addedBy"] == LIBRARIAN
        assert stored["addedAt"] != "1999-01-01"

    @pytest.mark.asyncio
    async def test_create_book_requires_title(self, test_client, bearer):
        response = await test_client.post("/books", json={"author": "Nobody"}, headers=bearer("librarian-token"))
        assert response.status_code == 400
        assert "title" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_admin_may_add_books(self, test_client, bearer, mongo_db):
        response = await test_client.post("/books", json={"title": "Admin Pick"}, headers=bearer("admin-token"))
        assert response.status_code == 200
        stored = await mongo_db["books"].find_one({"title": "Admin Pick"})
        assert stored["addedBy"] == ADMIN

    @pytest.mark.asyncio
    async def test_mybooks_lists_only_own(self, test_client, bearer, add_book):
        await add_book(title="Mine", status="pending")
        await add_book(title="Theirs", added_by=OTHER_LIBRARIAN)

        response = await test_client.get("/mybooks", headers=bearer("librarian-token"))

        assert response.status_code == 200
        assert [book["title"] for book in response.json()] == ["Mine"]

    @pytest.mark.asyncio
    async def test_update_own_book(self, test_client, bearer, add_book, mongo_db):
        book_id = await add_book(title="Old Title")

        response = await test_client.patch(
            f"/books/{book_id}",
            json={"title": "New Title", "quantity": 4},
            headers=bearer("librarian-token"),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "matchedCount": 1, "modifiedCount": 1}
        stored = await mongo_db["books"].find_one({"_id": book_id})
        assert stored["title"] == "New Title"
        assert stored["quantity"] == 4

    @pytest.mark.asyncio
    async def test_update_foreign_book_is_noop(self, test_client, bearer, add_book, mongo_db):
        book_id = await add_book(title="Not Yours", added_by=OTHER_LIBRARIAN)

        response = await test_client.patch(
            f"/books/{book_id}",
            json={"title": "Hijacked"},
            headers=bearer("librarian-token"),
        )

        assert response.status_code == 200
        assert response.json()["matchedCount"] == 0
        stored = await mongo_db["books"].find_one({"_id": book_id})
        assert stored["title"] == "Not Yours"

    @pytest.mark.asyncio
    async def test_update_cannot_reassign_owner(self, test_client, bearer, add_book, mongo_db):
        book_id = await add_book(title="Kept")

        response = await test_client.patch(
            f"/books/{book_id}",
            json={"addedBy": OTHER_LIBRARIAN, "price": 20},
            headers=bearer("librarian-token"),
        )

        assert response.status_code == 200
        stored = await mongo_db["books"].find_one({"_id": book_id})
        assert stored["addedBy"] == LIBRARIAN
        assert stored["price"] == 20

    @pytest.mark.asyncio
    async def test_update_cannot_null_title(self, test_client, bearer, add_book, mongo_db):
        book_id = await add_book(title="Keeps Its Title")

        response = await test_client.patch(
            f"/books/{book_id}",
            json={"title": None},
            headers=bearer("librarian-token"),
        )

        assert response.status_code == 400
        assert "title" in response.json()["message"]
        stored = await mongo_db["books"].find_one({"_id": book_id})
        assert stored["title"] == "Keeps Its Title"

    @pytest.mark.asyncio
    async def test_update_with_empty_body_is_400(self, test_client, bearer, add_book):
        book_id = await add_book()
        response = await test_client.patch(f"/books/{book_id}", json={}, headers=bearer("librarian-token"))
        assert response.status_code == 400
        assert response.json() == {"message": "No fields to update"}


class TestAdminBooks:

    @pytest.mark.asyncio
    async def test_admin_lists_every_status(self, test_client, bearer, add_book):
        await add_book(title="A")
        await add_book(title="B", status="pending", added_by=OTHER_LIBRARIAN)

        response = await test_client.get("/admin/books", headers=bearer("admin-token"))

        assert response.status_code == 200
        assert sorted(book["title"] for book in response.json()) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_admin_publishes_book(self, test_client, bearer, add_book):
        book_id = await add_book(title="Awaiting Review", status="pending")

        response = await test_client.patch(
            f"/admin/books/{book_id}/status",
            json={"status": "published"},
            headers=bearer("admin-token"),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        catalogue = await test_client.get("/allbooks")
        assert [book["title"] for book in catalogue.json()] == ["Awaiting Review"]

    @pytest.mark.asyncio
    async def test_status_of_unknown_book_is_404(self, test_client, bearer):
        response = await test_client.patch(
            f"/admin/books/{ObjectId()}/status",
            json={"status": "published"},
            headers=bearer("admin-token"),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_status_is_400(self, test_client, bearer, add_book):
        book_id = await add_book()
        response = await test_client.patch(
            f"/admin/books/{book_id}/status",
            json={"status": ""},
            headers=bearer("admin-token"),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_cascades_to_orders(self, test_client, bearer, add_book, add_order, mongo_db):
        doomed = await add_book(title="Doomed")
        survivor = await add_book(title="Survivor")
        await add_order(doomed)
        await add_order(doomed, status="shipped")
        kept_order = await add_order(survivor)

        response = await test_client.delete(f"/admin/books/{doomed}", headers=bearer("admin-token"))

        assert response.status_code == 200
        assert await mongo_db["books"].find_one({"_id": doomed}) is None
        assert await mongo_db["orders"].count_documents({"bookId": doomed}) == 0
        assert await mongo_db["orders"].find_one({"_id": kept_order}) is not None

        librarian_view = await test_client.get("/librarian/orders", headers=bearer("librarian-token"))
        assert [order["_id"] for order in librarian_view.json()] == [str(kept_order)]
        reader_view = await test_client.get("/myorders", headers=bearer("reader-token"))
        assert [order["_id"] for order in reader_view.json()] == [str(kept_order)]

    @pytest.mark.asyncio
    async def test_delete_unknown_book_is_404(self, test_client, bearer):
        response = await test_client.delete(f"/admin/books/{ObjectId()}", headers=bearer("admin-token"))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_librarian_cannot_moderate(self, test_client, bearer, add_book):
        book_id = await add_book()
        response = await test_client.delete(f"/admin/books/{book_id}", headers=bearer("librarian-token"))
        assert response.status_code == 403
