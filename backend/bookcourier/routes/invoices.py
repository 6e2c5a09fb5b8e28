"""
BookCourier Backend — Invoice Route Handler
=============================================

GET /myinvoices: one invoice per paid order of the caller, recomputed from
orders and books on every call.
"""

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import SELF_SCOPED, Caller, authorize
from bookcourier.database import get_db, to_json
from bookcourier.schemas.common import ErrorResponse
from bookcourier.services.invoice_service import invoice_service

router = APIRouter(tags=["Invoices"])


@router.get(
    "/myinvoices",
    summary="List the caller's invoices",
    responses={401: {"model": ErrorResponse}},
)
async def my_invoices(
    caller: Caller = Depends(authorize(SELF_SCOPED)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await invoice_service.list_invoices(db, caller.scope()))
