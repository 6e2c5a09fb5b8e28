"""
BookCourier Backend — Invoice Tests
=====================================

What we test:
    ✅ Price normalization of numbers and currency strings
    ✅ Only paid orders of the caller become invoices
    ✅ Invoices for deleted books fall back to "Unknown" and 0
"""

import pytest

from bookcourier.services.invoice_service import normalize_price

from conftest import READER


class TestNormalizePrice:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (12.5, 12.5),
            (9, 9),
            ("$12.50", 12.5),
            ("BDT 450", 450.0),
            ("1,299.00", 1299.0),
            ("free", 0),
            ("", 0),
            ("1.2.3", 0),
            (None, 0),
            (True, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            ({"amount": 3}, 0),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_price(raw) == expected


class TestMyInvoices:

    @pytest.mark.asyncio
    async def test_only_paid_orders_of_caller(self, test_client, bearer, add_book, add_order, mongo_db):
        book_id = await add_book(title="Paid For", price="$12.50")
        paid = await add_order(book_id, payment_status="paid")
        await mongo_db["orders"].update_one({"_id": paid}, {"$set": {"paymentId": "PAY-1700000000000"}})
        await add_order(book_id)
        await add_order(book_id, user_email="someone@example.com", payment_status="paid")

        response = await test_client.get("/myinvoices", headers=bearer("reader-token"))

        assert response.status_code == 200
        invoices = response.json()
        assert len(invoices) == 1
        invoice = invoices[0]
        assert invoice["_id"] == str(paid)
        assert invoice["paymentId"] == "PAY-1700000000000"
        assert invoice["bookTitle"] == "Paid For"
        assert invoice["amount"] == 12.5
        assert invoice["date"] is not None

    @pytest.mark.asyncio
    async def test_pay_then_invoice(self, test_client, bearer, add_book, add_order):
        order_id = await add_order(await add_book(title="Flow", price=20))

        await test_client.patch(f"/orders/{order_id}/pay", headers=bearer("reader-token"))
        response = await test_client.get("/myinvoices", headers=bearer("reader-token"))

        [invoice] = response.json()
        assert invoice["paymentId"].startswith("PAY-")
        assert invoice["amount"] == 20

    @pytest.mark.asyncio
    async def test_missing_book_and_payment_id(self, test_client, bearer, add_book, add_order, mongo_db):
        book_id = await add_book()
        order_id = await add_order(book_id, user_email=READER, payment_status="paid")
        await mongo_db["books"].delete_one({"_id": book_id})

        response = await test_client.get("/myinvoices", headers=bearer("reader-token"))

        [invoice] = response.json()
        assert invoice["bookTitle"] == "Unknown"
        assert invoice["amount"] == 0
        assert invoice["paymentId"] == str(order_id)

    @pytest.mark.asyncio
    async def test_no_invoices(self, test_client, bearer):
        response = await test_client.get("/myinvoices", headers=bearer("reader-token"))
        assert response.json() == []
