"""
FastAPI application entry point
"""
from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from app.core.config import settings
from app.core.database import engine, Base, get_session_factory
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    QueryFailureError,
    TranslationServiceError,
    ValidationError,
)
from app.core.health import VERSION, get_health_status
from app.core.logging_config import setup_logging

# Import all models so their tables are registered on Base.metadata
from app import models  # noqa: F401

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    QueryFailureError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

app = FastAPI(
    title=settings.APP_NAME,
    description="Translation keys, localized values and tags: search, mutation and export",
    version=VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")


@app.on_event("shutdown")
async def shutdown():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME}...")
    engine.dispose()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": VERSION,
        "status": "running"
    }


@app.get("/health")
def health(session_factory=Depends(get_session_factory)):
    """
    Health check endpoint.
    Returns status of all components.
    """
    return get_health_status(session_factory)


@app.get("/health/ready")
def readiness(session_factory=Depends(get_session_factory)):
    """
    Readiness probe.
    Returns 200 if ready to accept traffic.
    """
    health_status = get_health_status(session_factory)

    if health_status["status"] == "healthy":
        return JSONResponse(content=health_status, status_code=status.HTTP_200_OK)
    return JSONResponse(content=health_status, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


@app.get("/health/live")
async def liveness():
    """
    Liveness probe.
    Returns 200 if application is alive.
    """
    return {"status": "alive"}


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests"""
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"{request.method} {request.url.path} - "
            f"Error: {str(e)} - "
            f"Time: {process_time:.3f}s",
            exc_info=True
        )
        raise

    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.3f}s"
    )
    return response


def _error_body(error_type: str, message: str, details=None) -> dict:
    return {
        "success": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details,
        },
    }


@app.exception_handler(TranslationServiceError)
async def service_error_handler(request: Request, exc: TranslationServiceError):
    """Map engine error kinds to HTTP status codes"""
    status_code = next(
        (code for kind, code in ERROR_STATUS_CODES.items() if isinstance(exc, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=_error_body(type(exc).__name__, exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request shape (body/query types) - same envelope as engine errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("ValidationError", "Invalid request", jsonable_encoder(exc.errors())),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "ServerError",
            str(exc) if settings.DEBUG else "An error occurred",
        ),
    )


# Include routers
from app.api.v1 import router as api_v1_router

app.include_router(api_v1_router, prefix="/api/v1")
