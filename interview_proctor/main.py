"""
Interview Proctor Service - FastAPI Application
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .proctor import router as proctor_router
from .proctor.api import get_session_manager
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup; stop recording sessions on shutdown."""
    setup_logging(
        service_name="interview-proctor",
        level=settings.LOG_LEVEL,
        log_to_file=settings.LOG_TO_FILE,
        log_dir=settings.LOG_DIR
    )
    logger.info(
        f"Monitoring: tick={settings.TICK_SECONDS}s "
        f"no_face_threshold={settings.NO_FACE_THRESHOLD_TICKS} "
        f"object_interval={settings.OBJECT_CHECK_INTERVAL_SECONDS}s"
    )
    logger.info(f"Session store: {settings.SESSION_STORE_PATH}")

    yield

    get_session_manager().shutdown()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Webcam-based integrity monitoring for live interviews",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)


# ============================================================================
# Request Logging Middleware
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    start = time.time()
    method = request.method
    path = request.url.path

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"RequestError {method} {path}: {e}")
        raise

    # Frames arrive several times a second, keep them out of INFO
    if path not in ["/health", "/favicon.ico", "/api/proctor/frame"]:
        duration_ms = int((time.time() - start) * 1000)
        logger.info(f"{method} {path} -> {response.status_code} in {duration_ms}ms")

    return response


# CORS middleware - the interview UI is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard origin
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(proctor_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.APP_NAME,
        "docs": "/docs" if settings.DEBUG else "Disabled in production"
    }
