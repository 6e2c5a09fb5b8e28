"""
BookCourier Backend — Review Service
======================================

What:  Book reviews, gated on the reviewer having ordered the book.

The gate only requires that an order exists for (bookId, caller email);
unpaid and cancelled orders qualify too.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.database import ORDERS, REVIEWS, to_object_id
from bookcourier.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


class ReviewService:

    async def create_review(
        self,
        db: AsyncDatabase,
        book_id: str,
        rating: int,
        comment: Optional[str],
        caller_email: str,
        caller_name: str,
    ):
        """
        Store a review by the caller.

        Raises:
            ValidationError: Malformed bookId.
            ForbiddenError: The caller never ordered this book.
        """
        oid = to_object_id(book_id, field="bookId")
        ordered = await db[ORDERS].find_one({"bookId": oid, "userEmail": caller_email})
        if ordered is None:
            raise ForbiddenError(message="Order required to review")

        result = await db[REVIEWS].insert_one(
            {
                "bookId": oid,
                "userEmail": caller_email,
                "userName": caller_name,
                "rating": rating,
                "comment": comment,
                "createdAt": datetime.now(timezone.utc),
            }
        )
        logger.info("Review %s on book %s by %s", result.inserted_id, book_id, caller_email)
        return result.inserted_id

    async def list_for_book(self, db: AsyncDatabase, book_id: str) -> List[Dict[str, Any]]:
        cursor = db[REVIEWS].find(
            {"bookId": to_object_id(book_id, field="bookId")},
            sort=[("createdAt", DESCENDING)],
        )
        return await cursor.to_list(None)


review_service = ReviewService()
