"""Data-access layer"""
from .image import (
    ImageStore,
    ImagePage,
    normalize_page,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)

__all__ = [
    "ImageStore",
    "ImagePage",
    "normalize_page",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
