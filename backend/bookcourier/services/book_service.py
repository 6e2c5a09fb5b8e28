"""
BookCourier Backend — Book Service
====================================

What:  Catalogue reads, librarian listing management and admin moderation.
Who:   Called by routes/books.py.

Ownership:
    Librarian updates are filtered by `addedBy` through Caller.scope(), so a
    librarian aiming at another librarian's book matches nothing and the
    update is a no-op. Admin moderation matches by id only.

Deletion:
    Deleting a book also deletes its orders. The two deletes are separate,
    non-transactional operations; a failure between them leaves orphaned
    orders, which no read path joins back to a book except invoices
    ("Unknown" title).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.database import BOOKS, ORDERS, to_object_id
from bookcourier.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PUBLISHED = "published"
PENDING = "pending"

# Fields the server owns; never taken from caller input
PROTECTED_FIELDS = frozenset({"_id", "addedBy", "addedAt"})


def _strip_protected(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key not in PROTECTED_FIELDS}


class BookService:
    """Business logic for the books collection."""

    # ── Public catalogue ──────────────────────────────────────────────────

    async def list_published(self, db: AsyncDatabase) -> List[Dict[str, Any]]:
        return await db[BOOKS].find({"status": PUBLISHED}).to_list(None)

    async def list_latest(self, db: AsyncDatabase, limit: int = 6) -> List[Dict[str, Any]]:
        cursor = db[BOOKS].find({"status": PUBLISHED}, sort=[("addedAt", DESCENDING)], limit=limit)
        return await cursor.to_list(None)

    async def get_book(self, db: AsyncDatabase, book_id: str) -> Dict[str, Any]:
        book = await db[BOOKS].find_one({"_id": to_object_id(book_id)})
        if book is None:
            raise NotFoundError(resource="Book", resource_id=book_id)
        return book

    # ── Librarian ─────────────────────────────────────────────────────────

    async def create_book(self, db: AsyncDatabase, data: Dict[str, Any], owner_email: str):
        """
        Insert a listing owned by `owner_email`.

        Returns:
            The inserted ObjectId.
        """
        book = _strip_protected(data)
        book.setdefault("status", PENDING)
        book["addedBy"] = owner_email
        book["addedAt"] = datetime.now(timezone.utc)

        result = await db[BOOKS].insert_one(book)
        logger.info("Book %s '%s' added by %s", result.inserted_id, book.get("title"), owner_email)
        return result.inserted_id

    async def list_owned(self, db: AsyncDatabase, scope: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await db[BOOKS].find(scope).to_list(None)

    async def owned_book_ids(self, db: AsyncDatabase, owner_email: str) -> List[Any]:
        books = await db[BOOKS].find({"addedBy": owner_email}, {"_id": 1}).to_list(None)
        return [book["_id"] for book in books]

    async def update_owned(
        self,
        db: AsyncDatabase,
        book_id: str,
        changes: Dict[str, Any],
        scope: Dict[str, Any],
    ) -> Dict[str, int]:
        """
        Apply `changes` to the book if it falls inside `scope`.

        Returns:
            {"matchedCount", "modifiedCount"}; both 0 when the caller does not
            own the book.

        Raises:
            ValidationError: Malformed id or nothing to update.
        """
        updates = _strip_protected(changes)
        if not updates:
            raise ValidationError(message="No fields to update", field="body")

        query = {**scope, "_id": to_object_id(book_id)}
        result = await db[BOOKS].update_one(query, {"$set": updates})
        if result.matched_count == 0:
            logger.info("Book update %s matched nothing within scope %s", book_id, scope)
        return {"matchedCount": result.matched_count, "modifiedCount": result.modified_count}

    # ── Admin ─────────────────────────────────────────────────────────────

    async def list_all(self, db: AsyncDatabase) -> List[Dict[str, Any]]:
        return await db[BOOKS].find().to_list(None)

    async def set_status(self, db: AsyncDatabase, book_id: str, status: str) -> None:
        result = await db[BOOKS].update_one(
            {"_id": to_object_id(book_id)},
            {"$set": {"status": status}},
        )
        if result.matched_count == 0:
            raise NotFoundError(resource="Book", resource_id=book_id)
        logger.info("Book %s status set to '%s'", book_id, status)

    async def delete_with_orders(self, db: AsyncDatabase, book_id: str) -> int:
        """
        Delete a book and cascade to its orders.

        Returns:
            Number of orders deleted.
        """
        oid = to_object_id(book_id)
        result = await db[BOOKS].delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError(resource="Book", resource_id=book_id)

        orders = await db[ORDERS].delete_many({"bookId": oid})
        logger.info("Book %s deleted; cascaded to %d orders", book_id, orders.deleted_count)
        return orders.deleted_count


book_service = BookService()
