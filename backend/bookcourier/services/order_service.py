"""
BookCourier Backend — Order Service
=====================================

What:  Order placement, listing, fulfilment status and payment.
Who:   Called by routes/orders.py.

Lifecycle:
    created  → status="pending", paymentStatus="unpaid"
    status   → any non-empty string chosen by the book's librarian or an admin
    cancel   → status="cancelled"
    pay      → paymentStatus="paid", paymentId, date (owner only, not cancelled)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.database import BOOKS, ORDERS, to_object_id
from bookcourier.exceptions import ForbiddenError, NotFoundError, ValidationError
from bookcourier.services.book_service import book_service

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class OrderService:
    """Business logic for the orders collection."""

    async def create_order(self, db: AsyncDatabase, data: Dict[str, Any], caller_email: str):
        """
        Place an order for the caller.

        `data["userEmail"]` must equal the verified email; extra fields
        (address, phone, ...) are stored as given.

        Returns:
            The inserted ObjectId.

        Raises:
            ForbiddenError: userEmail does not match the caller.
            ValidationError: bookId is malformed.
        """
        if data.get("userEmail") != caller_email:
            raise ForbiddenError()

        order = {key: value for key, value in data.items() if key != "_id"}
        order.update(
            bookId=to_object_id(data.get("bookId"), field="bookId"),
            status="pending",
            paymentStatus="unpaid",
            orderedAt=datetime.now(timezone.utc),
        )
        result = await db[ORDERS].insert_one(order)
        logger.info("Order %s placed by %s for book %s", result.inserted_id, caller_email, order["bookId"])
        return result.inserted_id

    async def list_for_user(self, db: AsyncDatabase, scope: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await db[ORDERS].find(scope).to_list(None)

    async def list_for_librarian(self, db: AsyncDatabase, owner_email: str) -> List[Dict[str, Any]]:
        """Orders whose book was added by `owner_email` (two-step lookup)."""
        book_ids = await book_service.owned_book_ids(db, owner_email)
        if not book_ids:
            return []
        return await db[ORDERS].find({"bookId": {"$in": book_ids}}).to_list(None)

    async def _get_managed_order(
        self, db: AsyncDatabase, order_id: str, caller_email: str, is_admin: bool
    ) -> Dict[str, Any]:
        order = await db[ORDERS].find_one({"_id": to_object_id(order_id)})
        if order is None:
            raise NotFoundError(resource="Order", resource_id=order_id)
        if is_admin:
            return order

        book = await db[BOOKS].find_one({"_id": order.get("bookId")}, {"addedBy": 1})
        if book is None or book.get("addedBy") != caller_email:
            raise ForbiddenError()
        return order

    async def set_status(
        self, db: AsyncDatabase, order_id: str, status: str, caller_email: str, is_admin: bool
    ) -> None:
        order = await self._get_managed_order(db, order_id, caller_email, is_admin)
        await db[ORDERS].update_one({"_id": order["_id"]}, {"$set": {"status": status}})
        logger.info("Order %s status %s → %s by %s", order_id, order.get("status"), status, caller_email)

    async def cancel(self, db: AsyncDatabase, order_id: str, caller_email: str, is_admin: bool) -> None:
        await self.set_status(db, order_id, CANCELLED, caller_email, is_admin)

    async def pay(self, db: AsyncDatabase, order_id: str, scope: Dict[str, Any]) -> str:
        """
        Mark the caller's order as paid.

        Returns:
            The generated payment id.

        Raises:
            NotFoundError: No such order owned by the caller.
            ValidationError: The order was cancelled.
        """
        query = {**scope, "_id": to_object_id(order_id)}
        order = await db[ORDERS].find_one(query)
        if order is None:
            raise NotFoundError(resource="Order", resource_id=order_id)
        if order.get("status") == CANCELLED:
            raise ValidationError(message="Cancelled orders cannot be paid", field="status")

        payment_id = f"PAY-{int(time.time() * 1000)}"
        await db[ORDERS].update_one(
            {"_id": order["_id"]},
            {
                "$set": {
                    "paymentStatus": "paid",
                    "paymentId": payment_id,
                    "date": datetime.now(timezone.utc),
                }
            },
        )
        logger.info("Order %s paid (%s)", order_id, payment_id)
        return payment_id


order_service = OrderService()
