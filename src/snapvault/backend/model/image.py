"""Stored image model"""

from datetime import datetime, timezone

from sqlalchemy import Column, LargeBinary
from sqlmodel import Field

from .base import BaseModel

DEFAULT_CONTENT_TYPE = "image/jpeg"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredImage(BaseModel, table=True):
    """
    StoredImage model - one image received through the messaging session.

    Lifecycle:
    1. Inbound image message arrives on the live session
    2. Ingestion pipeline downloads the payload and inserts one row
    3. Row is never updated; there is no delete operation

    Idempotency:
    - message_id is the source message identifier and carries a unique index
    - A second insert for the same message_id fails with an integrity error,
      which the store reports as DuplicateContentError
    """

    __tablename__ = "images"

    message_id: str = Field(
        index=True,
        unique=True,
        max_length=255,
        description="Source message identifier (idempotency key)"
    )
    sender: str = Field(
        max_length=255,
        description="Originating conversation or participant id"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        index=True,
        description="When the image was persisted"
    )
    payload: bytes = Field(
        sa_column=Column(LargeBinary, nullable=False),
        description="Raw image bytes"
    )
    content_type: str = Field(
        default=DEFAULT_CONTENT_TYPE,
        max_length=100,
        description="MIME type"
    )
    caption: str = Field(
        default="",
        description="Caption sent with the image"
    )
