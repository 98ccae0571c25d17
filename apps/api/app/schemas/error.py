"""API error response schemas."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
