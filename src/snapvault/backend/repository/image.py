"""Image store: data access over the images table

No protocol or business policy lives here. Callers get plain entities,
typed errors (DuplicateContentError, NotFoundError, PersistenceError) and
pages of payload-free summaries.
"""
import logging
from dataclasses import dataclass
from math import ceil
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..exception import DuplicateContentError, NotFoundError, PersistenceError
from ..model import StoredImage
from ..schema.image import ImageOut

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

# Signed 64-bit INTEGER range of the id column
MAX_ROW_ID = 2**63 - 1
MIN_ROW_ID = -(2**63)

# Keeps (page - 1) * page_size inside the INTEGER range
MAX_PAGE = MAX_ROW_ID // MAX_PAGE_SIZE

# Every column except the payload
SUMMARY_COLUMNS = (
    StoredImage.id,
    StoredImage.message_id,
    StoredImage.sender,
    StoredImage.timestamp,
    StoredImage.content_type,
    StoredImage.caption,
)


def normalize_page(page: Optional[int], page_size: Optional[int]) -> tuple[int, int]:
    """Apply listing defaults and bounds

    - page: 1 when missing, non-positive or beyond MAX_PAGE
    - page_size: 12 when missing or non-positive, capped at MAX_PAGE_SIZE
    """
    if page is None or page < 1 or page > MAX_PAGE:
        page = DEFAULT_PAGE
    if page_size is None or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    page_size = min(page_size, MAX_PAGE_SIZE)
    return page, page_size


@dataclass
class ImagePage:
    """One page of image summaries"""

    items: List[ImageOut]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.page_size)


class ImageStore:
    """Sole point of contact with the database for stored images"""

    def __init__(self, async_session_factory):
        self.async_session_factory = async_session_factory

    async def insert(self, image: StoredImage) -> int:
        """Insert a new image and return its id

        Raises:
            DuplicateContentError: An image with the same message_id exists
            PersistenceError: Any other database failure
        """
        message_id = image.message_id
        try:
            async with self.async_session_factory() as session:
                session.add(image)
                await session.commit()
                await session.refresh(image)
                return image.id
        except IntegrityError as e:
            # The unique index is the only constraint a well-formed entity can
            # violate, but confirm before reporting a duplicate.
            if await self._exists(message_id):
                raise DuplicateContentError(
                    f"Image already stored for message {message_id}",
                    message_id=message_id
                ) from e
            logger.error(f"Integrity error inserting image for message {message_id}: {e}")
            raise PersistenceError(f"Failed to store image for message {message_id}") from e
        except SQLAlchemyError as e:
            logger.error(f"Database error inserting image for message {message_id}: {e}")
            raise PersistenceError(f"Failed to store image for message {message_id}") from e

    async def find_by_id(self, image_id: int) -> StoredImage:
        """Return the full entity (payload included)

        Raises:
            NotFoundError: No image with this id
            PersistenceError: Database failure
        """
        # No row can hold an id outside the column range
        if not MIN_ROW_ID <= image_id <= MAX_ROW_ID:
            raise NotFoundError(f"Image not found: {image_id}")

        try:
            async with self.async_session_factory() as session:
                image = await session.get(StoredImage, image_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error loading image {image_id}: {e}")
            raise PersistenceError(f"Failed to load image {image_id}") from e

        if image is None:
            raise NotFoundError(f"Image not found: {image_id}")
        return image

    async def list(self, page: Optional[int] = None, page_size: Optional[int] = None) -> ImagePage:
        """List images newest first, without payloads

        Raises:
            PersistenceError: Database failure
        """
        page, page_size = normalize_page(page, page_size)
        offset = (page - 1) * page_size

        try:
            async with self.async_session_factory() as session:
                total = (
                    await session.execute(select(func.count()).select_from(StoredImage))
                ).scalar() or 0

                stmt = (
                    select(*SUMMARY_COLUMNS)
                    .order_by(StoredImage.timestamp.desc(), StoredImage.id.desc())
                    .offset(offset)
                    .limit(page_size)
                )
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            logger.error(f"Database error listing images (page={page}, size={page_size}): {e}")
            raise PersistenceError("Failed to list images") from e

        items = [ImageOut.model_validate(dict(row._mapping)) for row in rows]

        logger.debug(f"Listed {len(items)} images (total={total}, page={page}, size={page_size})")
        return ImagePage(items=items, total=total, page=page, page_size=page_size)

    async def _exists(self, message_id: str) -> bool:
        try:
            async with self.async_session_factory() as session:
                result = await session.execute(
                    select(StoredImage.id).where(StoredImage.message_id == message_id)
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error(f"Database error checking message {message_id}: {e}")
            return False
