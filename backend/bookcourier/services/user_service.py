"""
BookCourier Backend — User Service
====================================

What:  Lookup, lazy provisioning and role management of User documents.
Who:   Used by the authorization gate (role resolution) and the user routes.

get_or_create contract:
    For a verified identity, return the single User whose email matches,
    creating it with role "user" if none exists. Calling it any number of
    times, concurrently or not, yields exactly one document per email: the
    insert is an upsert keyed on email with $setOnInsert, backed by the
    unique index on users.email.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from bookcourier.database import USERS, to_object_id
from bookcourier.exceptions import NotFoundError
from bookcourier.services.identity_base import Identity

logger = logging.getLogger(__name__)


class UserService:
    """Business logic for the users collection."""

    async def find_by_email(self, db: AsyncDatabase, email: str) -> Optional[Dict[str, Any]]:
        return await db[USERS].find_one({"email": email})

    async def get_or_create(self, db: AsyncDatabase, identity: Identity) -> Dict[str, Any]:
        """
        Return the caller's User, provisioning it on first sight.

        Returns:
            The stored document (including `_id`).
        """
        existing = await self.find_by_email(db, identity.email)
        if existing is not None:
            return existing

        new_user = {
            "name": identity.display_name,
            "email": identity.email,
            "role": "user",
            "createdAt": datetime.now(timezone.utc),
        }
        try:
            result = await db[USERS].update_one(
                {"email": identity.email},
                {"$setOnInsert": new_user},
                upsert=True,
            )
            if result.upserted_id is not None:
                logger.info("Provisioned user %s with role 'user'", identity.email)
        except DuplicateKeyError:
            # A concurrent request won the upsert race; its document is the one
            logger.debug("Concurrent provisioning of %s resolved by unique index", identity.email)

        return await self.find_by_email(db, identity.email)

    async def list_users(self, db: AsyncDatabase) -> List[Dict[str, Any]]:
        return await db[USERS].find().to_list(None)

    async def change_role(self, db: AsyncDatabase, user_id: str, role: str) -> None:
        """
        Set a user's role.

        Raises:
            ValidationError: Malformed id.
            NotFoundError: No user with that id.
        """
        result = await db[USERS].update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"role": role}},
        )
        if result.matched_count == 0:
            raise NotFoundError(resource="User", resource_id=user_id)
        logger.info("User %s role set to '%s'", user_id, role)


user_service = UserService()
