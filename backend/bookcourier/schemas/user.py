"""Request schemas for user administration."""

from typing import Literal

from pydantic import BaseModel, Field


class RoleUpdate(BaseModel):
    """Body of PATCH /admin/users/{id}/role."""

    role: Literal["user", "librarian", "admin"] = Field(description="New role for the user")
