"""
BookCourier Backend — Book Request Schemas
============================================

Books are schema-less: only `title` is required on creation, every other
field the client sends (author, image, category, description, quantity,
...) is stored as-is. `price` may be a number or a currency string such as
"$12.50"; invoices normalize it on read.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    status: Optional[str] = Field(default=None, description="Defaults to 'pending'")
    price: Optional[Union[int, float, str]] = None


class BookUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(default=None, min_length=1)
    status: Optional[str] = None
    price: Optional[Union[int, float, str]] = None

    @field_validator("title")
    @classmethod
    def title_not_null(cls, v: Optional[str]) -> str:
        """A book keeps a title; omit the field to leave it unchanged."""
        if v is None:
            raise ValueError("title cannot be null")
        return v


class StatusUpdate(BaseModel):
    """
    Body of the status endpoints for books and orders.

    Any non-empty string is accepted; there is no transition table.
    """

    status: str = Field(min_length=1)
