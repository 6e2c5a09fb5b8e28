"""Request schemas for reviews."""

from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    bookId: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=5000)
