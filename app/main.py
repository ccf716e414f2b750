"""
Main FastAPI application
Classroom quiz platform: AI-extracted quizzes, student attempts and live monitoring
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from app.config import settings
from app.database import init_db
from app.errors import QuizPlatformError
from app.api import classes, quizzes, student, monitor
from app.services.live_session_service import live_session_service
from app.services.submission_service import submission_service
from app.utils.cache import cache_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Backend for teacher-authored reading quizzes with live student progress",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )

    return response


# Domain exception handler
@app.exception_handler(QuizPlatformError)
async def quiz_platform_exception_handler(request: Request, exc: QuizPlatformError):
    """Scope every domain failure to the request that triggered it"""

    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""

    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


# HTTP exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Format HTTP exceptions consistently"""

    if isinstance(exc.detail, dict):
        content = {**exc.detail, "status_code": exc.status_code}
    else:
        content = {
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }

    return JSONResponse(status_code=exc.status_code, content=content)


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Liveness plus the state of optional collaborators

    The generation cache is optional; a missing Redis is reported, not fatal.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "generation_cache": "enabled" if cache_service.enabled else "disabled",
        "live_feeds": {
            "live_sessions": live_session_service.feed.total_subscribers(),
            "submissions": submission_service.feed.total_subscribers()
        }
    }


@app.get("/")
async def root():
    return {
        "message": "Classroom Quiz Platform API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(classes.router)
app.include_router(quizzes.router)
app.include_router(student.router)
app.include_router(monitor.router)


@app.on_event("startup")
async def startup_event():
    """Create tables on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    if settings.SEED_DEMO_CLASS:
        logger.info("Demo class seeding enabled for teachers without classes")
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """End open live feeds so their WebSocket loops return"""
    closed = live_session_service.feed.close_all() + submission_service.feed.close_all()
    logger.info(f"Shutting down application ({closed} live feed subscription(s) closed)")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
