"""
BookCourier Backend — Wishlist Route Handlers
===============================================

POST   /wishlist        save a book ({"message": "Already wishlisted"} on repeat)
GET    /wishlist        the caller's saved books
DELETE /wishlist/{id}   remove one of the caller's items
"""

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import SELF_SCOPED, Caller, authorize
from bookcourier.database import get_db, to_json
from bookcourier.schemas.common import ErrorResponse, MessageResponse, SuccessResponse
from bookcourier.schemas.wishlist import WishlistCreate
from bookcourier.services.wishlist_service import wishlist_service

router = APIRouter(tags=["Wishlist"])


@router.post(
    "/wishlist",
    summary="Add a book to the caller's wishlist",
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def add_to_wishlist(
    payload: WishlistCreate,
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
):
    inserted_id = await wishlist_service.add(db, payload.model_dump(), caller.email)
    if inserted_id is None:
        return MessageResponse(message="Already wishlisted").model_dump()
    return SuccessResponse(insertedId=str(inserted_id)).model_dump(exclude_none=True)


@router.get("/wishlist", summary="List the caller's wishlist")
async def get_wishlist(
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await wishlist_service.list_items(db, caller.scope()))


@router.delete(
    "/wishlist/{item_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Remove an item from the caller's wishlist",
)
async def remove_from_wishlist(
    item_id: str,
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await wishlist_service.remove(db, item_id, caller.scope())
    return SuccessResponse()
