"""
BookCourier Backend — Review Route Handlers
=============================================

POST /reviews            review a book the caller has ordered
GET  /reviews?bookId=    a book's reviews, newest first
"""

from fastapi import APIRouter, Depends, Query
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import ANY_CALLER, Caller, authorize
from bookcourier.database import get_db, to_json
from bookcourier.schemas.common import ErrorResponse, SuccessResponse
from bookcourier.schemas.review import ReviewCreate
from bookcourier.services.review_service import review_service

router = APIRouter(tags=["Reviews"])


@router.post(
    "/reviews",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Review a book",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"description": "The caller has no order for this book", "model": ErrorResponse},
    },
)
async def create_review(
    payload: ReviewCreate,
    caller: Caller = Depends(authorize(ANY_CALLER)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    inserted_id = await review_service.create_review(
        db,
        book_id=payload.bookId,
        rating=payload.rating,
        comment=payload.comment,
        caller_email=caller.email,
        caller_name=caller.identity.display_name,
    )
    return SuccessResponse(insertedId=str(inserted_id))


@router.get("/reviews", summary="List a book's reviews", responses={400: {"model": ErrorResponse}})
async def list_reviews(
    book_id: str = Query(alias="bookId", description="Id of the reviewed book"),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await review_service.list_for_book(db, book_id))
