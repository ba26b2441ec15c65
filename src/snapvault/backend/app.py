"""FastAPI application factory and configuration"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from .api import image_router
from .config import resolve_database_url
from .db_init import create_engine_and_factory, run_preflight_checks
from .exception import SnapvaultException
from .logging import setup_logging
from .repository import ImageStore
from .schema.response import ErrorResponse

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def create_app(instance_path: Path, config: dict) -> FastAPI:
    """Create and configure FastAPI application instance

    This is the application factory function that initializes logging,
    creates the FastAPI app, configures middleware, registers exception
    handlers, and includes routers.

    Args:
        instance_path: Path to the snapvault instance directory
        config: Configuration dictionary loaded from config.toml

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationError: Required settings are missing
    """
    setup_logging(instance_path, "serve", config)

    db_url = resolve_database_url(instance_path, config)
    engine, async_session_factory = create_engine_and_factory(db_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_preflight_checks(engine)
        logger.info("Image viewer ready")
        yield
        await engine.dispose()

    app = FastAPI(
        title="snapvault API",
        description="Read-only gallery over images received through WhatsApp",
        lifespan=lifespan,
    )

    # Store in app state for dependency injection
    app.state.engine = engine
    app.state.async_session_factory = async_session_factory
    app.state.image_store = ImageStore(async_session_factory)
    app.state.config = config
    app.state.instance_path = instance_path

    # ==================== CORS Configuration ====================

    cors_config = config.get('cors', {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.get('allow_origins', ["*"]),
        allow_credentials=cors_config.get('allow_credentials', False),
        allow_methods=cors_config.get('allow_methods', ["GET"]),
        allow_headers=cors_config.get('allow_headers', ["*"]),
    )

    # ==================== Exception Handlers ====================

    @app.exception_handler(SnapvaultException)
    async def snapvault_exception_handler(request: Request, exc: SnapvaultException) -> JSONResponse:
        """Translate business exceptions to their HTTP status with an ErrorResponse body"""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=exc.message,
                error={"code": exc.code}
            ).model_dump()
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Anything unexpected becomes a generic 500; details stay in the log"""
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                message="Internal server error",
                error={"code": "INTERNAL_ERROR"}
            ).model_dump()
        )

    # ==================== Router Registration ====================

    app.include_router(image_router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Static landing page (gallery)"""
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    return app
