"""
BookCourier Backend — Document Store Access
=============================================

What:  MongoDB client construction, collection names, id conversion, JSON
       encoding of stored documents and the FastAPI database dependency.
How:   A single AsyncMongoClient is created at startup (see context.py) and
       its database handle is shared by every request. Route handlers receive
       the handle through `get_db`, services receive it as an argument.

Collections:
    users      one document per identity, keyed by unique email
    books      listings, owned by the librarian in `addedBy`
    orders     purchase orders referencing books by ObjectId
    wishlist   per-user saved books with a denormalized snapshot
    reviews    ratings gated on a prior order

Documents are schema-less. Ids travel over HTTP as 24-character hex strings
and are converted to ObjectId at the service boundary.
"""

import logging
from typing import Any

from bson import ObjectId
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.config import Settings
from bookcourier.exceptions import ValidationError

logger = logging.getLogger(__name__)


USERS = "users"
BOOKS = "books"
ORDERS = "orders"
WISHLIST = "wishlist"
REVIEWS = "reviews"


def create_client(settings: Settings) -> AsyncMongoClient:
    """
    Build the MongoDB client from settings.

    The client connects lazily on first operation, so constructing it never
    blocks startup even when the server is unreachable.
    """
    return AsyncMongoClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
        appname="bookcourier-backend",
    )


async def ensure_indexes(db: AsyncDatabase) -> None:
    """
    Create the indexes the API relies on.

    users.email is unique so user provisioning stays idempotent under
    concurrent first requests. Index creation is idempotent in MongoDB.
    """
    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    await db[BOOKS].create_index([("addedBy", ASCENDING)])
    await db[ORDERS].create_index([("userEmail", ASCENDING)])
    await db[ORDERS].create_index([("bookId", ASCENDING)])
    await db[WISHLIST].create_index([("userEmail", ASCENDING), ("bookId", ASCENDING)])
    await db[REVIEWS].create_index([("bookId", ASCENDING)])
    logger.info("MongoDB indexes ensured on database '%s'", db.name)


def to_object_id(value: Any, field: str = "id") -> ObjectId:
    """
    Convert a client-supplied id string into an ObjectId.

    Raises:
        ValidationError: The value is not a valid 24-character hex id (→ 400).
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(message="Invalid id", field=field, context={"value": repr(value)[:64]})
    return ObjectId(value)


def to_json(document: Any) -> Any:
    """
    Encode a document (or list of documents) into JSON-compatible data.

    ObjectIds become hex strings and datetimes ISO 8601 strings, at any
    nesting depth.
    """
    return jsonable_encoder(document, custom_encoder={ObjectId: str})


def get_db(request: Request) -> AsyncDatabase:
    """
    FastAPI dependency returning the shared database handle.

    Example usage in a route:
        @router.get("/allbooks")
        async def all_books(db: AsyncDatabase = Depends(get_db)):
            return to_json(await book_service.list_published(db))
    """
    return request.app.state.context.db
