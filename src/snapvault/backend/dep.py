"""Dependency injection functions for FastAPI routes"""

from fastapi import Request

from .repository import ImageStore


def get_image_store(request: Request) -> ImageStore:
    """Image store bound to the app's session factory

    Usage:
        from typing import Annotated
        from fastapi import Depends

        StoreDep = Annotated[ImageStore, Depends(get_image_store)]

        @router.get("/example")
        async def example_route(store: StoreDep):
            page = await store.list()
            ...

    Note:
        ImageStore opens and closes its own session per operation, so the
        route holds no per-request database state.
    """
    return request.app.state.image_store
