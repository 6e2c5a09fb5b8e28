"""Request schemas for orders."""

from pydantic import BaseModel, ConfigDict, Field


class OrderCreate(BaseModel):
    """
    Body of POST /order.

    userEmail must equal the verified caller email. Extra fields (name,
    phone, address, price, ...) are stored with the order.
    """

    model_config = ConfigDict(extra="allow")

    bookId: str
    userEmail: str = Field(min_length=1)
