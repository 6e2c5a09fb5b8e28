"""
BookCourier Backend — Book Route Handlers
===========================================

Public catalogue:
    GET    /allbooks                 published books
    GET    /latestbooks              most recently added published books
    GET    /book/{id}                one book, any status

Librarian (librarian or admin):
    POST   /books                    add a listing owned by the caller
    GET    /mybooks                  the caller's listings
    PATCH  /books/{id}               update a listing the caller owns

Admin:
    GET    /admin/books              every listing
    PATCH  /admin/books/{id}/status  moderate a listing
    DELETE /admin/books/{id}         delete a listing and its orders
"""

import logging

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import ADMIN_ONLY, LIBRARIAN_OWNED_BOOKS, Caller, authorize
from bookcourier.config import settings
from bookcourier.database import get_db, to_json
from bookcourier.schemas.book import BookCreate, BookUpdate, StatusUpdate
from bookcourier.schemas.common import ErrorResponse, SuccessResponse, UpdateResponse
from bookcourier.services.book_service import book_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Books"])

_protected = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


# ── Public catalogue ──────────────────────────────────────────────────────

@router.get("/allbooks", summary="List published books")
async def all_books(db: AsyncDatabase = Depends(get_db)):
    return to_json(await book_service.list_published(db))


@router.get("/latestbooks", summary="List the latest published books")
async def latest_books(db: AsyncDatabase = Depends(get_db)):
    return to_json(await book_service.list_latest(db, limit=settings.latest_books_limit))


@router.get(
    "/book/{book_id}",
    summary="Get a book by id",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_book(book_id: str, db: AsyncDatabase = Depends(get_db)):
    return to_json(await book_service.get_book(db, book_id))


# ── Librarian ─────────────────────────────────────────────────────────────

@router.post(
    "/books",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Add a book listing",
    responses=_protected,
)
async def create_book(
    payload: BookCreate,
    caller: Caller = Depends(authorize(LIBRARIAN_OWNED_BOOKS)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    inserted_id = await book_service.create_book(
        db, payload.model_dump(exclude_none=True), owner_email=caller.email
    )
    return SuccessResponse(insertedId=str(inserted_id))


@router.get("/mybooks", summary="List the caller's listings", responses=_protected)
async def my_books(
    caller: Caller = Depends(authorize(LIBRARIAN_OWNED_BOOKS)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await book_service.list_owned(db, caller.scope()))


@router.patch(
    "/books/{book_id}",
    response_model=UpdateResponse,
    summary="Update a listing owned by the caller",
    description=(
        "Only the listing's owner can change it. Targeting someone else's "
        "listing succeeds with matchedCount 0 and leaves it untouched."
    ),
    responses={400: {"model": ErrorResponse}, **_protected},
)
async def update_book(
    book_id: str,
    payload: BookUpdate,
    caller: Caller = Depends(authorize(LIBRARIAN_OWNED_BOOKS)),
    db: AsyncDatabase = Depends(get_db),
) -> UpdateResponse:
    counts = await book_service.update_owned(
        db, book_id, payload.model_dump(exclude_unset=True), scope=caller.scope()
    )
    return UpdateResponse(**counts)


# ── Admin ─────────────────────────────────────────────────────────────────

@router.get("/admin/books", summary="List every listing", responses=_protected)
async def admin_books(
    caller: Caller = Depends(authorize(ADMIN_ONLY)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await book_service.list_all(db))


@router.patch(
    "/admin/books/{book_id}/status",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Set a listing's status",
    responses={404: {"model": ErrorResponse}, **_protected},
)
async def admin_book_status(
    book_id: str,
    payload: StatusUpdate,
    caller: Caller = Depends(authorize(ADMIN_ONLY)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await book_service.set_status(db, book_id, payload.status)
    return SuccessResponse()


@router.delete(
    "/admin/books/{book_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Delete a listing and its orders",
    responses={404: {"model": ErrorResponse}, **_protected},
)
async def admin_delete_book(
    book_id: str,
    caller: Caller = Depends(authorize(ADMIN_ONLY)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await book_service.delete_with_orders(db, book_id)
    logger.info("Book %s deleted by %s", book_id, caller.email)
    return SuccessResponse()
