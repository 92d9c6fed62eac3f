"""
Service wiring and FastAPI dependencies.
"""

from typing import Optional

from fastapi import Request

from itinerary_worker.core.config import Settings
from itinerary_worker.core.database import Database
from itinerary_worker.itineraries.generation import GenerationClient
from itinerary_worker.itineraries.service import JobOrchestrator
from itinerary_worker.itineraries.store import JobStore, MongoJobStore


def get_job_store(settings: Settings) -> JobStore:
    return MongoJobStore(Database.get_collection(settings.ITINERARY_COLLECTION))


def build_job_service(settings: Settings, scheduler=None, store: Optional[JobStore] = None) -> JobOrchestrator:
    """Assemble the orchestrator from explicit configuration."""
    return JobOrchestrator(
        store=store or get_job_store(settings),
        generator=GenerationClient(settings),
        scheduler=scheduler,
        store_write_retries=settings.STORE_WRITE_RETRIES,
        store_retry_delay=settings.GENERATION_RETRY_DELAY_SECONDS,
    )


def get_job_service(request: Request) -> JobOrchestrator:
    """Dependency returning the orchestrator built at startup."""
    return request.app.state.job_service


def get_store(request: Request) -> JobStore:
    """Dependency returning the store used for polling reads."""
    return request.app.state.job_service.store
