from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import time
import logging

from .api.v1.auth import router as auth_router
from .api.v1.bookings import router as bookings_router
from .api.v1.doctors import router as doctors_router
from .api.v1.patients import router as patients_router
from .api.v1.staff import router as staff_router
from .core.config import settings
from .core.database import Database, create_redis_client
from .core.handlers import register_exception_handlers

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to the database on startup and release the pool on shutdown."""
    logger.info("Starting MediMate Booking API...")
    try:
        app.state.database.connect()
        app.state.database.create_all()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down MediMate Booking API...")
    app.state.database.disconnect()


def create_app(database: Optional[Database] = None, redis_client=None) -> FastAPI:
    """Build the application around an explicitly provided database handle."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Role-based medical appointment booking API",
        openapi_url="/api/v1/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.database = database if database is not None else Database(settings.get_database_url)
    app.state.redis = redis_client if redis_client is not None else create_redis_client(settings.REDIS_URL)

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(bookings_router, prefix="/api/v1")
    app.include_router(patients_router, prefix="/api/v1")
    app.include_router(doctors_router, prefix="/api/v1")
    app.include_router(staff_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "database": "connected" if app.state.database.is_connected else "disconnected",
            "timestamp": time.time(),
            "version": settings.VERSION
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "success": True,
            "message": "Hello from MediMate!",
            "version": settings.VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "endpoints": {
                "authentication": "/api/v1/auth",
                "bookings": "/api/v1/bookings",
                "patients": "/api/v1/patients",
                "doctors": "/api/v1/doctors",
                "staff": "/api/v1/staff",
                "docs": "/docs",
                "openapi": "/api/v1/openapi.json"
            }
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medimate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
