"""
BookCourier Backend — Wishlist Service
========================================

What:  Per-user saved books with a title/image/price snapshot.

Uniqueness of (bookId, userEmail) is a check-then-insert: two racing
requests for the same pair can both insert. Reads tolerate duplicates.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.database import WISHLIST, to_object_id

logger = logging.getLogger(__name__)


class WishlistService:

    async def add(self, db: AsyncDatabase, item: Dict[str, Any], caller_email: str) -> Optional[Any]:
        """
        Add a book to the caller's wishlist.

        Returns:
            The inserted ObjectId, or None when the pair already exists.
        """
        book_id = to_object_id(item.get("bookId"), field="bookId")
        exists = await db[WISHLIST].find_one({"bookId": book_id, "userEmail": caller_email})
        if exists is not None:
            return None

        result = await db[WISHLIST].insert_one(
            {
                "bookId": book_id,
                "title": item.get("title"),
                "image": item.get("image"),
                "price": item.get("price"),
                "userEmail": caller_email,
                "addedAt": datetime.now(timezone.utc),
            }
        )
        logger.info("Book %s wishlisted by %s", book_id, caller_email)
        return result.inserted_id

    async def list_items(self, db: AsyncDatabase, scope: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await db[WISHLIST].find(scope).to_list(None)

    async def remove(self, db: AsyncDatabase, item_id: str, scope: Dict[str, Any]) -> int:
        result = await db[WISHLIST].delete_one({**scope, "_id": to_object_id(item_id)})
        return result.deleted_count


wishlist_service = WishlistService()
