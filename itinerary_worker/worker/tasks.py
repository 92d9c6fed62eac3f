"""Celery tasks (sync) for itinerary generation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from itinerary_worker.core.config import get_settings
from itinerary_worker.core.result import Ok
from itinerary_worker.worker.celery_app import celery_app

logger = logging.getLogger(__name__)

GENERATE_TASK_NAME = "itinerary_worker.worker.tasks.generate_itinerary"


def _run_async(coro):
    """Run async function in sync Celery task."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _generate(job_id: str, destination: str, duration_days: int) -> Dict[str, Any]:
    from itinerary_worker.core.database import Database
    from itinerary_worker.core.dependencies import build_job_service, get_job_store
    from itinerary_worker.itineraries.service import JobOrchestrator

    settings = get_settings()
    await Database.connect()
    try:
        try:
            service = build_job_service(settings)
        except Exception as e:
            # e.g. missing provider credentials; the job must not stay processing
            logger.exception(f"Could not start generation for job {job_id}")
            orchestrator = JobOrchestrator(
                get_job_store(settings),
                generator=None,
                scheduler=None,
                store_write_retries=settings.STORE_WRITE_RETRIES,
                store_retry_delay=settings.GENERATION_RETRY_DELAY_SECONDS,
            )
            await orchestrator.fail_job(job_id, f"Failed to start generation: {type(e).__name__}")
            return {"jobId": job_id, "status": "failed"}

        try:
            outcome = await service.run_generation(job_id, destination, duration_days)
        finally:
            await service.generator.close()
    finally:
        await Database.disconnect()

    return {"jobId": job_id, "status": "completed" if isinstance(outcome, Ok) else "failed"}


@celery_app.task(name=GENERATE_TASK_NAME, acks_late=True)
def generate_itinerary(job_id: str, destination: str, duration_days: int) -> Dict[str, Any]:
    """
    Run one job's generation in the worker process.

    Redelivery is safe: the store only applies the first terminal write.
    """
    logger.info(f"Generating itinerary for job {job_id}")
    return _run_async(_generate(job_id, destination, duration_days))
