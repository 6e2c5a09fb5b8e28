"""
BookCourier Backend — Authentication & Authorization Gate
===========================================================

What:  FastAPI dependencies that verify the bearer credential, resolve the
       caller's stored User record and enforce an access policy.
How:   Routes declare what they need instead of repeating the checks:

           @router.get("/mybooks")
           async def my_books(caller: Caller = Depends(authorize(LIBRARIAN_OWNED_BOOKS))):
               ...

       An AccessPolicy names the roles allowed (None = any authenticated
       caller) and optionally the document field that must equal the
       caller's email. Services apply that ownership filter via
       caller.scope().

Flow per request:
    Authorization header → IdentityProvider.verify_token() → Identity
    → users.find_one(email) → role ∈ policy.roles? → Caller
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from fastapi import Depends, Header
from pymongo.asynchronous.database import AsyncDatabase

from bookcourier.context import get_identity_provider
from bookcourier.database import get_db
from bookcourier.exceptions import ForbiddenError, UnauthorizedError
from bookcourier.services.identity_base import Identity, IdentityProvider
from bookcourier.services.user_service import user_service

logger = logging.getLogger(__name__)


ROLE_LIBRARIAN = "librarian"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class AccessPolicy:
    """
    Authorization requirements of an endpoint.

    Attributes:
        roles:       Stored roles allowed through; None admits any verified
                     caller without requiring a User record.
        owner_field: Document field that must equal the caller's email for
                     the operation to touch a document.
    """

    roles: Optional[FrozenSet[str]] = None
    owner_field: Optional[str] = None

    def allows(self, user: Optional[Dict[str, Any]]) -> bool:
        if self.roles is None:
            return True
        return user is not None and user.get("role") in self.roles


ANY_CALLER = AccessPolicy()
SELF_SCOPED = AccessPolicy(owner_field="userEmail")
ADMIN_ONLY = AccessPolicy(roles=frozenset({ROLE_ADMIN}))
LIBRARIAN_OR_ADMIN = AccessPolicy(roles=frozenset({ROLE_LIBRARIAN, ROLE_ADMIN}))
LIBRARIAN_OWNED_BOOKS = AccessPolicy(
    roles=frozenset({ROLE_LIBRARIAN, ROLE_ADMIN}),
    owner_field="addedBy",
)


@dataclass(frozen=True)
class Caller:
    """The verified identity of the current request plus its stored record."""

    identity: Identity
    user: Optional[Dict[str, Any]] = None
    policy: AccessPolicy = ANY_CALLER

    @property
    def email(self) -> str:
        return self.identity.email

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def scope(self, query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Restrict a query to documents owned by the caller.

        Returns a new filter; the policy's owner_field (if any) is pinned to
        the verified email and overrides whatever the query said.
        """
        scoped = dict(query or {})
        if self.policy.owner_field:
            scoped[self.policy.owner_field] = self.email
        return scoped


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        raise UnauthorizedError(reason="missing_authorization_header")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        raise UnauthorizedError(reason="malformed_authorization_header")
    return token


async def get_identity(
    authorization: Optional[str] = Header(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    """Identity verification gate: 401 unless the bearer token verifies."""
    token = parse_bearer(authorization)
    return await provider.verify_token(token)


def authorize(policy: AccessPolicy):
    """
    Build a dependency enforcing `policy` and yielding the Caller.

    Role-restricted policies always re-read the caller's User record, so a
    role change by an admin takes effect on the very next request.
    """

    async def dependency(
        identity: Identity = Depends(get_identity),
        db: AsyncDatabase = Depends(get_db),
    ) -> Caller:
        user = None
        if policy.roles is not None:
            user = await user_service.find_by_email(db, identity.email)
            if not policy.allows(user):
                logger.info(
                    "Forbidden: %s (role=%s) needs one of %s",
                    identity.email,
                    user.get("role") if user else None,
                    sorted(policy.roles),
                )
                raise ForbiddenError()
        return Caller(identity=identity, user=user, policy=policy)

    return dependency
