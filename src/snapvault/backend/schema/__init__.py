"""
Schema package for API request/response models.
"""

from .response import ErrorResponse, Pagination
from .image import ImageOut, ImageListResponse

__all__ = [
    "ErrorResponse",
    "Pagination",
    "ImageOut",
    "ImageListResponse",
]
