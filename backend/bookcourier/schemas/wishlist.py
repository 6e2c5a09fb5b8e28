"""Request schemas for the wishlist."""

from typing import Optional, Union

from pydantic import BaseModel


class WishlistCreate(BaseModel):
    """Book id plus the snapshot shown in the wishlist without a join."""

    bookId: str
    title: Optional[str] = None
    image: Optional[str] = None
    price: Optional[Union[int, float, str]] = None
