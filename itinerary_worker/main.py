"""
Itinerary Worker API - Main application entry point.

Accepts trip requests, generates itineraries in the background and stores
job records for clients to poll.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from itinerary_worker.core.config import get_settings
from itinerary_worker.core.database import Database
from itinerary_worker.core.dependencies import build_job_service
from itinerary_worker.core.logging import configure_logging
from itinerary_worker.core.middleware import MaxBodySizeMiddleware
from itinerary_worker.itineraries.views import router as itineraries_router
from itinerary_worker.worker.scheduler import get_scheduler

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    configure_logging(settings.LOG_LEVEL)
    await Database.connect()
    scheduler = get_scheduler(settings)
    app.state.scheduler = scheduler
    app.state.job_service = build_job_service(settings, scheduler=scheduler)
    logger.info(f"{settings.APP_NAME} started with {settings.SCHEDULER_BACKEND} scheduler")
    yield
    # Shutdown: let in-flight generations write their terminal state first.
    await scheduler.drain(timeout=settings.SHUTDOWN_DRAIN_TIMEOUT_SECONDS)
    await app.state.job_service.generator.close()
    await Database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
## Itinerary Worker API

Asynchronous AI travel itinerary generation.

- `POST /api` with `{"destination": "Paris, France", "durationDays": 3}` returns `{"jobId": ...}` (202)
- `GET /api/jobs/{jobId}` returns the job record: `processing`, then `completed` with the itinerary or `failed` with an error
    """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(MaxBodySizeMiddleware)

app.include_router(itineraries_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"error": detail}."""
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if Database.client else "disconnected",
        "version": settings.APP_VERSION,
    }
