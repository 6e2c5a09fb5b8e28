"""
BookCourier Backend — Order Route Handlers
============================================

Reader:
    POST  /order               place an order (userEmail must be the caller)
    GET   /myorders            the caller's orders
    PATCH /orders/{id}/pay     pay one of the caller's orders

Librarian (librarian or admin):
    GET   /librarian/orders    orders for books the caller added
    PATCH /orders/{id}/status  set fulfilment status
    PATCH /orders/{id}/cancel  cancel
"""

import logging

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import ANY_CALLER, LIBRARIAN_OR_ADMIN, SELF_SCOPED, Caller, authorize
from bookcourier.database import get_db, to_json
from bookcourier.schemas.book import StatusUpdate
from bookcourier.schemas.common import ErrorResponse, SuccessResponse
from bookcourier.schemas.order import OrderCreate
from bookcourier.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])

_protected = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


@router.post(
    "/order",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Place an order",
    responses={400: {"model": ErrorResponse}, **_protected},
)
async def create_order(
    payload: OrderCreate,
    caller: Caller = Depends(authorize(ANY_CALLER)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    inserted_id = await order_service.create_order(db, payload.model_dump(), caller.email)
    return SuccessResponse(insertedId=str(inserted_id))


@router.get("/myorders", summary="List the caller's orders", responses=_protected)
async def my_orders(
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await order_service.list_for_user(db, caller.scope()))


@router.get("/librarian/orders", summary="Orders for the caller's books", responses=_protected)
async def librarian_orders(
    caller: Caller = Depends(authorize(LIBRARIAN_OR_ADMIN)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await order_service.list_for_librarian(db, caller.email))


@router.patch(
    "/orders/{order_id}/status",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Set an order's status",
    responses={404: {"model": ErrorResponse}, **_protected},
)
async def order_status(
    order_id: str,
    payload: StatusUpdate,
    caller: Caller = Depends(authorize(LIBRARIAN_OR_ADMIN)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await order_service.set_status(db, order_id, payload.status, caller.email, caller.is_admin)
    return SuccessResponse()


@router.patch(
    "/orders/{order_id}/cancel",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Cancel an order",
    responses={404: {"model": ErrorResponse}, **_protected},
)
async def cancel_order(
    order_id: str,
    caller: Caller = Depends(authorize(LIBRARIAN_OR_ADMIN)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await order_service.cancel(db, order_id, caller.email, caller.is_admin)
    return SuccessResponse()


@router.patch(
    "/orders/{order_id}/pay",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Pay one of the caller's orders",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def pay_order(
    order_id: str,
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await order_service.pay(db, order_id, caller.scope())
    return SuccessResponse()
