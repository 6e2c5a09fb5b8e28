"""
BookCourier Backend — Application Context
===========================================

What:  The long-lived resources every request needs: the document store
       handle and the identity provider.
How:   Built once at startup (AppContext.from_settings), stored on
       `app.state.context`, read by FastAPI dependencies, released at
       shutdown via close(). Tests build their own context from an in-memory
       store and a stub provider and pass it to create_app().
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from bookcourier.config import Settings
from bookcourier.database import create_client, ensure_indexes
from bookcourier.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    db: AsyncDatabase
    identity_provider: IdentityProvider
    client: Optional[Any] = None

    @classmethod
    async def from_settings(cls, settings: Settings) -> "AppContext":
        # Imported here so importing the app never pulls in firebase-admin
        # credentials handling unless a real context is being built.
        from bookcourier.services.firebase_service import FirebaseIdentityProvider

        client = create_client(settings)
        db = client[settings.mongodb_db_name]
        try:
            await ensure_indexes(db)
        except PyMongoError as e:
            # Keep serving: /health reports the store as disconnected
            logger.error("Could not ensure MongoDB indexes: %s", str(e))
        provider = FirebaseIdentityProvider.from_settings(settings)
        logger.info("Application context ready (database=%s)", settings.mongodb_db_name)
        return cls(db=db, identity_provider=provider, client=client)

    async def close(self) -> None:
        await self.identity_provider.close()
        if self.client is not None:
            await self.client.close()
            self.client = None
        logger.info("Application context closed")


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.context.identity_provider
