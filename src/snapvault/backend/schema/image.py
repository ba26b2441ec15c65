"""Image-related schemas for API output"""

from datetime import datetime

from pydantic import BaseModel, Field

from .response import Pagination


class ImageOut(BaseModel):
    """Stored image metadata (never includes the binary payload)

    Field names are served in camelCase to match the gallery front-end.
    """

    id: int = Field(..., description="Store-assigned image id")
    message_id: str = Field(..., alias="messageId", description="Source message id")
    sender: str = Field(..., description="Originating conversation or participant id")
    timestamp: datetime = Field(..., description="When the image was stored")
    content_type: str = Field(..., alias="contentType", description="MIME type")
    caption: str = Field("", description="Caption sent with the image")

    class Config:
        from_attributes = True
        populate_by_name = True


class ImageListResponse(BaseModel):
    """Paginated image listing"""

    images: list[ImageOut] = Field(..., description="Images on the current page, newest first")
    pagination: Pagination
