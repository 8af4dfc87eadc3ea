"""
Main FastAPI application.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from config.settings import settings
from backend.database import mongodb
from backend.api.routes import (
    health,
    auth,
    free_resources,
    courses,
    learning_paths,
    opportunities,
    personalized_paths,
    saved_videos,
    user_learning_paths,
    waitlist,
)
from backend.services import (
    ServiceError,
    youtube_service,
    groq_service,
    opportunity_status_service,
)


# Configure logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level=settings.log_level,
)
logger.add(
    settings.log_file,
    rotation="500 MB",
    retention="10 days",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    level=settings.log_level,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    logger.info("Starting up CodeLearnn API...")
    await mongodb.connect()

    if not settings.youtube_api_key:
        logger.warning("YOUTUBE_API_KEY is not set, video analysis is disabled")
    if not settings.groq_api_keys:
        logger.warning("No Groq API key configured, AI evaluation is disabled")

    try:
        opportunity_status_service.start()
        logger.success("Opportunity status sweep started")
    except Exception as e:
        logger.error(f"Failed to start opportunity status sweep: {e}")

    logger.success("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down CodeLearnn API...")

    try:
        await opportunity_status_service.stop()
        logger.info("Opportunity status sweep stopped")
    except Exception as e:
        logger.error(f"Error stopping opportunity status sweep: {e}")

    await youtube_service.close()
    await groq_service.close()
    await mongodb.disconnect()

    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="CodeLearnn API - AI-scored programming tutorials, courses, learning paths and opportunities",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Typed service failures carry their own HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(health.router, prefix=settings.api_prefix, tags=["Health"])
app.include_router(auth.router, prefix=settings.api_prefix, tags=["Authentication"])
app.include_router(free_resources.router, prefix=settings.api_prefix, tags=["Free Resources"])
app.include_router(courses.router, prefix=settings.api_prefix, tags=["Courses"])
app.include_router(learning_paths.router, prefix=settings.api_prefix, tags=["Learning Paths"])
app.include_router(opportunities.router, prefix=settings.api_prefix, tags=["Opportunities"])
app.include_router(personalized_paths.router, prefix=settings.api_prefix, tags=["Personalized Paths"])
app.include_router(saved_videos.router, prefix=settings.api_prefix, tags=["Saved Videos"])
app.include_router(user_learning_paths.router, prefix=settings.api_prefix, tags=["User Learning Paths"])
app.include_router(waitlist.router, prefix=settings.api_prefix, tags=["Waitlist"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "environment": settings.environment,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
