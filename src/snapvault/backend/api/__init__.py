"""
API package for REST endpoints.
"""

from .image import router as image_router

__all__ = [
    "image_router",
]
