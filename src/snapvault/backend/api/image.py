"""Image retrieval API endpoints"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ..dep import get_image_store
from ..exception import InternalError, NotFoundError, PersistenceError
from ..repository import ImageStore
from ..schema.image import ImageListResponse
from ..schema.response import Pagination

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"

router = APIRouter(tags=["Images"])


# ==================== Type Aliases ====================

StoreDep = Annotated[ImageStore, Depends(get_image_store)]


def _parse_int(value: Optional[str]) -> Optional[int]:
    """Lenient query integer: anything unparsable means 'use the default'"""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# ==================== API Endpoints ====================

@router.get("/image/{image_id}")
async def get_image(image_id: str, store: StoreDep) -> Response:
    """Serve the raw bytes of one stored image

    Response Headers:
        - Content-Type: stored content type
        - Content-Length: payload size
        - Cache-Control: public, max-age=31536000

    Raises:
        NotFoundError: Unknown or malformed id (404)
        InternalError: Store failure (500, generic message)
    """
    logger.info(f"Fetching image with ID: {image_id}")

    parsed_id = _parse_int(image_id)
    if parsed_id is None:
        raise NotFoundError("Image not found")

    try:
        image = await store.find_by_id(parsed_id)
    except NotFoundError:
        logger.info(f"Image not found: {image_id}")
        raise NotFoundError("Image not found")
    except PersistenceError as e:
        logger.error(f"Error serving image {image_id}: {e.message}")
        raise InternalError("Error serving image")

    logger.debug(
        f"Image details: id={image.id}, sender={image.sender}, "
        f"content_type={image.content_type}, size={len(image.payload)}"
    )

    return Response(
        content=image.payload,
        media_type=image.content_type,
        headers={"Cache-Control": CACHE_CONTROL},
    )


@router.get("/images", response_model=ImageListResponse)
async def list_images(
    store: StoreDep,
    page: Optional[str] = Query(None, description="Page number (default 1)"),
    limit: Optional[str] = Query(None, description="Items per page (default 12, max 100)"),
) -> ImageListResponse:
    """List stored images, newest first, without payloads

    Non-numeric or non-positive page/limit values, and pages past the id range,
    fall back to the defaults; limit is capped at 100.

    Response:
        {
          "images": [{"id": 1, "messageId": "...", "sender": "...",
                      "timestamp": "...", "contentType": "image/jpeg", "caption": ""}],
          "pagination": {"total": 25, "page": 1, "limit": 12, "totalPages": 3}
        }
    """
    try:
        result = await store.list(_parse_int(page), _parse_int(limit))
    except PersistenceError as e:
        logger.error(f"Error fetching images: {e.message}")
        raise InternalError("Error fetching images")

    logger.info(
        f"Listed {len(result.items)} images: page={result.page}/{result.total_pages}, "
        f"total={result.total}"
    )

    return ImageListResponse(
        images=result.items,
        pagination=Pagination(
            total=result.total,
            page=result.page,
            limit=result.page_size,
            total_pages=result.total_pages,
        ),
    )
