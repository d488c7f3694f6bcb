"""FastAPI application entry point.

This module initializes the BookSwap FastAPI application with all routers,
middleware, database lifecycle management, configuration, logging, the
cover image mount, and global exception handlers.
"""

from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .database import lifespan
from .exceptions import (
    APIException,
    api_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .logging_config import LoggingMiddleware, get_logger, setup_logging
from .middleware import AuthenticationContextMiddleware, SecurityHeadersMiddleware
from .routers.auth import router as auth_router
from .routers.books import router as books_router
from .routers.exchange_requests import router as exchange_requests_router
from .routers.health import router as health_router

logger = get_logger("main")

# Initialize logging before creating the app
setup_logging(settings)


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="BookSwap API",
        description="Book exchange marketplace: list books, browse listings and trade through exchange requests",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    configure_middleware(app)
    configure_exception_handlers(app)
    configure_routers(app)
    configure_root_endpoints(app)

    logger.info("FastAPI application configuration completed")
    return app


def configure_middleware(app: FastAPI) -> None:
    """Configure middleware stack for the application.

    Middleware added last runs first, so request logging wraps everything.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(SecurityHeadersMiddleware)
    configure_cors_middleware(app)
    app.add_middleware(AuthenticationContextMiddleware)
    app.add_middleware(LoggingMiddleware)


def configure_cors_middleware(app: FastAPI) -> None:
    """Configure CORS middleware based on environment.

    Args:
        app: FastAPI application instance
    """
    if settings.is_development:
        # Development: Allow all origins for easier testing
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORS configured for development (allow all origins)")
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
            max_age=86400,  # Cache preflight requests for 24 hours
        )
        logger.info(f"CORS configured with origins: {settings.cors_origins}")


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    # Generic handler must be last
    app.add_exception_handler(Exception, generic_exception_handler)


def configure_routers(app: FastAPI) -> None:
    """Configure and register API routers and the cover image mount.

    Args:
        app: FastAPI application instance
    """
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(books_router)
    app.include_router(exchange_requests_router)

    app.mount(
        "/uploads",
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )


def configure_root_endpoints(app: FastAPI) -> None:
    """Configure root and utility endpoints.

    Args:
        app: FastAPI application instance
    """

    @app.get("/", tags=["root"], summary="API Information")
    async def root() -> dict[str, Any]:
        """Root endpoint providing API information."""
        return {
            "message": "BookSwap API is running",
            "version": __version__,
            "environment": settings.environment,
            "docs": "/docs" if not settings.is_production else None,
            "health": "/api/health",
            "endpoints": {
                "auth": "/api/auth",
                "books": "/api/books",
                "my_books": "/api/my-books",
                "exchange_requests": "/api/exchange-requests",
                "my_requests": "/api/my-requests",
                "incoming_requests": "/api/incoming-requests",
                "uploads": "/uploads",
            },
        }

    @app.get("/version", tags=["root"], summary="API Version")
    async def version() -> dict[str, str]:
        return {"version": __version__, "environment": settings.environment}


app = create_app()

logger.info(
    "FastAPI application initialized successfully",
    extra={
        "environment": settings.environment,
        "debug": settings.debug,
    },
)
