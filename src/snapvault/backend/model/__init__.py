"""Data models"""
from .base import BaseModel
from .image import StoredImage, DEFAULT_CONTENT_TYPE

__all__ = [
    "BaseModel",
    "StoredImage",
    "DEFAULT_CONTENT_TYPE",
]
