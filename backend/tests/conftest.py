"""
BookCourier Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The app is built through create_app() with an injected AppContext:
       an in-memory MongoDB double (mongomock-motor) and a stub identity
       provider that maps fixed bearer tokens to identities. No real
       database, Firebase project or network is needed.

Fixture Hierarchy (all function-scoped):
    ├── mongo_db: empty in-memory database
    ├── identity_provider: StubIdentityProvider with the test callers
    ├── users: stored User records for reader, librarians and admin
    ├── add_book / add_order: insert documents directly
    ├── bearer: builds Authorization headers from a token
    └── test_client: HTTPX AsyncClient bound to the app
"""

import os

# Settings are read at import time; configure before importing the app
os.environ["MONGODB_URL"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB_NAME"] = "bookcourier_test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from bookcourier.context import AppContext
from bookcourier.exceptions import UnauthorizedError
from bookcourier.main import create_app
from bookcourier.services.identity_base import Identity, IdentityProvider


READER = "reader@example.com"
LIBRARIAN = "librarian@example.com"
OTHER_LIBRARIAN = "other.librarian@example.com"
ADMIN = "admin@example.com"
NEWCOMER = "newcomer@example.com"


class StubIdentityProvider(IdentityProvider):
    """Accepts only registered tokens; everything else is Unauthorized."""

    def __init__(self):
        self.identities: Dict[str, Identity] = {}
        self.calls = 0

    def register(self, token: str, email: str, name: Optional[str] = None) -> None:
        self.identities[token] = Identity(uid=f"uid-{token}", email=email, name=name)

    async def verify_token(self, token: str) -> Identity:
        self.calls += 1
        identity = self.identities.get(token)
        if identity is None:
            raise UnauthorizedError(reason="unknown test token")
        return identity


@pytest.fixture
def mongo_db():
    """A fresh, empty in-memory database per test."""
    return AsyncMongoMockClient()["bookcourier_test"]


@pytest.fixture
def identity_provider():
    provider = StubIdentityProvider()
    provider.register("reader-token", READER, "Rita Reader")
    provider.register("librarian-token", LIBRARIAN, "Lena Librarian")
    provider.register("other-librarian-token", OTHER_LIBRARIAN, "Otto Librarian")
    provider.register("admin-token", ADMIN, "Ada Admin")
    provider.register("newcomer-token", NEWCOMER, None)
    return provider


@pytest_asyncio.fixture
async def users(mongo_db):
    """
    Stored User records keyed by email. The newcomer has no record yet.
    """
    now = datetime.now(timezone.utc)
    ids = {}
    for email, name, role in [
        (READER, "Rita Reader", "user"),
        (LIBRARIAN, "Lena Librarian", "librarian"),
        (OTHER_LIBRARIAN, "Otto Librarian", "librarian"),
        (ADMIN, "Ada Admin", "admin"),
    ]:
        result = await mongo_db["users"].insert_one(
            {"name": name, "email": email, "role": role, "createdAt": now}
        )
        ids[email] = result.inserted_id
    return ids


@pytest.fixture
def add_book(mongo_db):
    """Insert a book directly; returns its ObjectId."""

    async def _add_book(
        title: str = "The Left Hand of Darkness",
        added_by: str = LIBRARIAN,
        status: str = "published",
        price=12.5,
        added_at: Optional[datetime] = None,
        **extra,
    ):
        doc = {
            "title": title,
            "status": status,
            "price": price,
            "addedBy": added_by,
            "addedAt": added_at or datetime.now(timezone.utc),
            **extra,
        }
        result = await mongo_db["books"].insert_one(doc)
        return result.inserted_id

    return _add_book


@pytest.fixture
def add_order(mongo_db):
    """Insert an order directly; returns its ObjectId."""

    async def _add_order(
        book_id,
        user_email: str = READER,
        status: str = "pending",
        payment_status: str = "unpaid",
    ):
        result = await mongo_db["orders"].insert_one(
            {
                "bookId": book_id,
                "userEmail": user_email,
                "status": status,
                "paymentStatus": payment_status,
                "orderedAt": datetime.now(timezone.utc),
            }
        )
        return result.inserted_id

    return _add_order


@pytest.fixture
def bearer():
    def _bearer(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def app(mongo_db, identity_provider):
    return create_app(context=AppContext(db=mongo_db, identity_provider=identity_provider))


@pytest_asyncio.fixture
async def test_client(app, users):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_allbooks(test_client):
            response = await test_client.get("/allbooks")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
