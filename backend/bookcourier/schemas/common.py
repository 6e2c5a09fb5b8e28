"""
BookCourier Backend — Shared Response Schemas
===============================================

What:  Envelopes shared by every route: mutation acknowledgements, error
       bodies and the health report.

Stored documents (books, orders, ...) are schema-less and are returned as
encoded dicts rather than through these models.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Acknowledgement for a mutation: `{"success": true[, "insertedId"]}`."""

    success: bool = Field(default=True)
    insertedId: Optional[str] = Field(default=None, description="Id of the created document")


class UpdateResponse(BaseModel):
    """
    Acknowledgement for an owner-scoped update.

    matchedCount is 0 when the caller does not own the document; the
    request still succeeds so the response does not reveal ownership.
    """

    success: bool = True
    matchedCount: int
    modifiedCount: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Error body returned for every 4xx/5xx raised by the application.

    Example:
        {"message": "Forbidden"}
    """

    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="MongoDB connectivity: connected, disconnected")
    identity_provider: str = Field(description="available, circuit_open")
    uptime_seconds: float
