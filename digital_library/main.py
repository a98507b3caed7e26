from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from loguru import logger

from digital_library.api.v1.routes import (admin_router, auth_router,
                                           books_router, health_router,
                                           root_router, users_router)
from digital_library.config import DEBUG, ENVIRONMENT, VERSION
from digital_library.database import DatabaseManager
from digital_library.middleware.cors import setup_cors
from digital_library.utils.exception_handling import \
    register_exception_handlers
from digital_library.utils.logging_config import setup_logging
from digital_library.utils.logging_request import log_requests_middleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Digital Library API...")
    logger.info("Environment: {}", ENVIRONMENT)
    logger.info("Version: {}", VERSION)

    db: DatabaseManager = app.state.db
    try:
        await db.initialize()
    except Exception as e:
        logger.critical("Failed to initialize database: {}", e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Digital Library API...")
    try:
        await db.close()
    except Exception as e:
        logger.error("Error closing database connection: {}", e)


def create_app(db: Optional[DatabaseManager] = None) -> FastAPI:
    app = FastAPI(
        title="Digital Library API",
        description="Catalog, downloads, personal library and reviews for a digital library",
        version=VERSION,
        debug=DEBUG,
        lifespan=lifespan,
    )
    # Process-scoped pool; request handlers reach it through app.state
    app.state.db = db or DatabaseManager()

    # --- Setup CORS ---
    setup_cors(app)

    # --- Include routers ---
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(books_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    # --- Add middleware ---
    app.middleware("http")(log_requests_middleware)

    # --- Add exception handlers ---
    register_exception_handlers(app)

    return app


setup_logging()
app = create_app()

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Uvicorn server...")

    uvicorn.run(
        "digital_library.main:app",
        host="0.0.0.0",
        port=8080,
        reload=DEBUG,
        log_level="error",
        access_log=False,
    )
