"""
Main FastAPI application.

Read-mostly API over the AI startup tables: listings, detail, investor
index, dashboard stats, RSS feed and ticket submission.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from startup_tracker.core.cache import TTLCache
from startup_tracker.core.config import get_settings
from startup_tracker.core.database import create_tables
from startup_tracker.core.errors import TrackerError
from startup_tracker.api.v1 import cache_admin, people, products, rss, startups, stats, suggest, vcs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Runs on startup and shutdown. The response cache starts empty here and
    is dropped on shutdown; it is never persisted.
    """
    # Startup
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)
    logger.info("Starting AI Startup Tracker API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Cache TTL: {settings.cache_ttl_seconds}s")

    # Create tracker tables
    try:
        create_tables()
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    app.state.cache = TTLCache(
        default_ttl=settings.cache_ttl_seconds,
        max_size=settings.cache_max_entries,
    )

    yield

    # Shutdown
    app.state.cache.clear()
    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(
    title="AI Startup Tracker API",
    description="Browse AI startups, their people, products, investors and news",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware (the dashboard is served from its own origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error responses: always {"error": message}
# =============================================================================


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location + ': ' if location else ''}{first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


# Include routers
app.include_router(startups.router, prefix="/api")
app.include_router(people.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(vcs.router, prefix="/api")
app.include_router(stats.router, prefix="/api")
app.include_router(rss.router, prefix="/api")
app.include_router(suggest.router, prefix="/api")
app.include_router(cache_admin.router, prefix="/api")


@app.get("/")
def root():
    """Root endpoint with service info."""
    return {
        "service": "AI Startup Tracker API",
        "version": "0.1.0",
        "resources": ["startups", "people", "products", "vcs", "stats", "rss"],
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """
    Health check endpoint.

    Returns status of the service and database connectivity.
    """
    from startup_tracker.core.database import ping

    health_status = {
        "status": "healthy",
        "service": "running",
        "database": "unknown"
    }

    # Check database connectivity
    try:
        ping()
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["database"] = "error"
        logger.warning(f"Database health check failed: {e}")

    return health_status
