"""
BookCourier Backend — User Route Handlers
===========================================

GET   /user                   caller's own record, provisioned on first call
GET   /admin/users            all users (admin)
PATCH /admin/users/{id}/role  change a user's role (admin)
"""

import logging

from fastapi import APIRouter, Depends
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.auth import ADMIN_ONLY, Caller, authorize, get_identity
from bookcourier.database import get_db, to_json
from bookcourier.schemas.common import ErrorResponse, SuccessResponse
from bookcourier.schemas.user import RoleUpdate
from bookcourier.services.identity_base import Identity
from bookcourier.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.get(
    "/user",
    summary="Get (or provision) the caller's user record",
    responses={401: {"model": ErrorResponse}},
)
async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncDatabase = Depends(get_db),
):
    """
    Return the caller's User document.

    Idempotent: the first call for a new email creates the record with role
    "user", later calls return that same record.
    """
    user = await user_service.get_or_create(db, identity)
    return to_json(user)


@router.get(
    "/admin/users",
    summary="List all users",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_users(
    caller: Caller = Depends(authorize(ADMIN_ONLY)),
    db: AsyncDatabase = Depends(get_db),
):
    return to_json(await user_service.list_users(db))


@router.patch(
    "/admin/users/{user_id}/role",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    summary="Change a user's role",
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def change_role(
    user_id: str,
    payload: RoleUpdate,
    caller: Caller = Depends(authorize(ADMIN_ONLY)),
    db: AsyncDatabase = Depends(get_db),
) -> SuccessResponse:
    await user_service.change_role(db, user_id, payload.role)
    logger.info("Role change for %s requested by %s", user_id, caller.email)
    return SuccessResponse()
