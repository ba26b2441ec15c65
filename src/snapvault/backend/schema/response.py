"""
Response schemas for API endpoints.

- ErrorResponse: Error response with error details
- Pagination: Pagination metadata for listings
"""

from typing import Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response with detailed error information."""

    success: bool = Field(False, description="Always false for error responses")
    message: Optional[str] = Field(None, description="Generic, client-safe error message")
    data: None = Field(None, description="Always null for error responses")
    error: Optional[dict] = Field(
        None,
        description="Error details including code",
        examples=[{"code": "NOT_FOUND"}, {"code": "INTERNAL_ERROR"}]
    )


class Pagination(BaseModel):
    """Pagination metadata describing a bounded slice of an ordered listing."""

    total: int = Field(..., description="Total number of items across all pages", ge=0)
    page: int = Field(..., description="Current page number", ge=1)
    limit: int = Field(..., description="Number of items per page", ge=1)
    total_pages: int = Field(
        ...,
        alias="totalPages",
        description="Total number of pages",
        ge=0
    )

    class Config:
        populate_by_name = True
