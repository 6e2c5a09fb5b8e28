"""
BookCourier Backend — Invoice Service
=======================================

What:  Derives invoices from the caller's paid orders on every read.
How:   For each paid order, join its book for title and price and normalize
       the price into a number. Nothing is persisted.

Price normalization:
    12.5        → 12.5   numbers pass through
    "$12.50"    → 12.5   every character except digits and "." is stripped
    "free"      → 0      nothing numeric left
    "1.2.3"     → 0      not a number after stripping
    None        → 0
"""

import logging
import math
import re
from typing import Any, Dict, List

from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.database import BOOKS, ORDERS

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.]")


def normalize_price(price: Any) -> float:
    """Convert a stored price (number or currency string) into an amount."""
    if isinstance(price, bool):
        return 0
    if isinstance(price, (int, float)):
        return price if math.isfinite(price) else 0
    if isinstance(price, str):
        digits = _NON_NUMERIC.sub("", price)
        if not digits:
            return 0
        try:
            amount = float(digits)
        except ValueError:
            logger.debug("Unparseable price %r; using 0", price)
            return 0
        return amount if math.isfinite(amount) else 0
    return 0


class InvoiceService:

    async def list_invoices(self, db: AsyncDatabase, scope: Dict[str, Any]) -> List[Dict[str, Any]]:
        orders = await db[ORDERS].find({**scope, "paymentStatus": "paid"}).to_list(None)

        invoices = []
        for order in orders:
            book = await db[BOOKS].find_one({"_id": order.get("bookId")})
            invoices.append(
                {
                    "_id": order["_id"],
                    "paymentId": order.get("paymentId") or order["_id"],
                    "bookTitle": (book or {}).get("title") or "Unknown",
                    "amount": normalize_price((book or {}).get("price")),
                    "date": order.get("orderedAt"),
                }
            )
        return invoices


invoice_service = InvoiceService()
