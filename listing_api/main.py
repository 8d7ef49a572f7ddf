"""
FastAPI application entry point.
Builds the application from explicit settings and wires the database and image store.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from typing import Optional
import logging

from listing_api.config import Settings, get_settings
from listing_api.database import (
    check_database_connection,
    create_engine_from_settings,
    create_session_factory,
    create_tables,
)
from listing_api.routers import properties_router
from listing_api.routers.properties import TOTAL_COUNT_HEADER
from listing_api.services.error_handler import ErrorHandlerService
from listing_api.services.image_store import build_image_store
from listing_api.utils.exceptions import APIException

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings; read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Creates the engine and image store on startup and releases them on shutdown.
        """
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        engine = create_engine_from_settings(settings)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        app.state.image_store = build_image_store(settings.image_store_settings())

        if await check_database_connection(app.state.session_factory):
            await create_tables(engine)
        else:
            logger.error("Failed to connect to database on startup")

        yield

        logger.info("Shutting down application")
        await app.state.image_store.aclose()
        await engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
        Property listing API for a real-estate marketplace.

        * **Listing**: filter by category and title, paginate with `_start`/`_end`,
          sort with `_sort`/`_order`; the total is returned in `x-total-count`
        * **Ownership**: every property belongs to a user, and the user's
          `allProperties` list is kept in step on create and delete
        * **Photos**: uploaded to the configured image host before the property is stored
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {
                "name": "Properties",
                "description": "Property listing management"
            },
            {
                "name": "Health",
                "description": "System health endpoints"
            }
        ],
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[TOTAL_COUNT_HEADER],
    )

    app.include_router(properties_router, prefix=settings.api_v1_prefix)

    if settings.image_store_backend == "local":
        app.mount(
            settings.uploads_url_path,
            StaticFiles(directory=settings.upload_dir, check_dir=False),
            name="uploads"
        )

    register_exception_handlers(app)
    register_health_routes(app)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        """Handle custom API exceptions."""
        return ErrorHandlerService.handle_api_exception(exc, request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI request validation errors."""
        return ErrorHandlerService.handle_validation_error(exc, request)

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
        """Handle Pydantic validation errors."""
        return ErrorHandlerService.handle_validation_error(exc, request)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        """Handle database errors."""
        return ErrorHandlerService.handle_database_error(exc, request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions, including routing errors such as unknown paths."""
        return ErrorHandlerService.handle_http_exception(exc, request)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        return ErrorHandlerService.handle_unexpected_error(exc, request)


def register_health_routes(app: FastAPI) -> None:
    """Register the health check endpoint."""

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint with database connectivity test.
        Used by container health checks and load balancers.
        """
        settings = request.app.state.settings
        if not await check_database_connection(request.app.state.session_factory):
            raise HTTPException(status_code=503, detail="Database connection failed")

        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "database": "connected"
        }


app = create_app()


if __name__ == "__main__":
    import uvicorn
    _settings = get_settings()
    uvicorn.run(
        "listing_api.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug
    )
