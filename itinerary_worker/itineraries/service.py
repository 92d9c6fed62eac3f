"""Itinerary job lifecycle: create, dispatch, generate, finish."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from itinerary_worker.core.exceptions import BadRequestException, ServiceUnavailableException
from itinerary_worker.core.ids import generate_job_id
from itinerary_worker.core.result import Err, ErrorKind, Ok, Result
from itinerary_worker.itineraries.generation import GenerationClient, retry_with_backoff
from itinerary_worker.itineraries.models import (
    COMPLETED,
    FAILED,
    PROCESSING,
    DayPlan,
    ItineraryRequest,
)
from itinerary_worker.itineraries.prompts import build_itinerary_prompt
from itinerary_worker.itineraries.schema import ITINERARY_SHAPE_HINT, validate_itinerary
from itinerary_worker.itineraries.store import JobStore

logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = 'Requires "destination" (string) and "durationDays" (positive number)'


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_job_request(destination: Any, duration_days: Any) -> ItineraryRequest:
    """Validate creation inputs or raise BadRequestException."""
    try:
        return ItineraryRequest(destination=destination, durationDays=duration_days)
    except ValidationError:
        raise BadRequestException(INVALID_REQUEST_MESSAGE)


class JobOrchestrator:
    """
    Owns the job state machine: processing -> completed | failed.

    Each job gets exactly two writes: the initial ``processing`` record,
    awaited before the id is handed back, and one terminal write from the
    background generation.
    """

    def __init__(
        self,
        store: JobStore,
        generator: GenerationClient,
        scheduler,
        *,
        store_write_retries: int = 2,
        store_retry_delay: float = 0.5,
        id_factory: Callable[[], str] = generate_job_id,
        clock: Callable[[], str] = _now,
        sleep=asyncio.sleep,
    ):
        self.store = store
        self.generator = generator
        self.scheduler = scheduler
        self._store_write_retries = store_write_retries
        self._store_retry_delay = store_retry_delay
        self._new_id = id_factory
        self._clock = clock
        self._sleep = sleep

    async def create_job(self, destination: Any, duration_days: Any) -> str:
        request = parse_job_request(destination, duration_days)
        job_id = self._new_id()

        await self.store.put(
            job_id,
            {
                "status": PROCESSING,
                "destination": request.destination,
                "durationDays": request.duration_days,
                "createdAt": self._clock(),
                "completedAt": None,
                "itinerary": None,
                "error": None,
            },
        )
        logger.info(f"Created itinerary job {job_id} ({request.destination}, {request.duration_days} days)")

        try:
            self.scheduler.dispatch(
                self.run_generation, job_id, request.destination, request.duration_days
            )
        except Exception as e:
            logger.error(f"Failed to dispatch generation for job {job_id}: {e}", exc_info=True)
            await self.fail_job(job_id, f"Failed to dispatch generation: {type(e).__name__}")
            raise ServiceUnavailableException("Failed to schedule itinerary generation.")

        return job_id

    async def run_generation(self, job_id: str, destination: str, duration_days: int) -> Result[List[DayPlan]]:
        """Generate, validate and record the outcome. Never raises."""
        try:
            prompt = build_itinerary_prompt(destination, duration_days)
            outcome = await self.generator.generate(prompt, ITINERARY_SHAPE_HINT)
            if isinstance(outcome, Ok):
                outcome = validate_itinerary(outcome.value)
        except Exception as e:
            logger.exception(f"Unexpected error generating itinerary for job {job_id}")
            outcome = Err(ErrorKind.INTERNAL, str(e) or type(e).__name__)

        await self._finish(job_id, outcome)
        return outcome

    async def fail_job(self, job_id: str, message: str) -> None:
        """Record an INTERNAL failure for a job whose generation cannot run."""
        await self._finish(job_id, Err(ErrorKind.INTERNAL, message))

    def _terminal_fields(self, outcome: Result[List[DayPlan]]) -> Dict[str, Any]:
        if isinstance(outcome, Ok):
            return {
                "status": COMPLETED,
                "itinerary": [day.model_dump() for day in outcome.value],
                "error": None,
                "completedAt": self._clock(),
            }
        return {
            "status": FAILED,
            "itinerary": None,
            "error": outcome.message,
            "completedAt": self._clock(),
        }

    async def _finish(self, job_id: str, outcome: Result[List[DayPlan]]) -> None:
        fields = self._terminal_fields(outcome)
        if isinstance(outcome, Err):
            logger.warning(f"Itinerary job {job_id} failed ({outcome.kind.value}): {outcome.message}")
        else:
            logger.info(f"Itinerary job {job_id} completed with {len(fields['itinerary'])} days")

        try:
            await retry_with_backoff(
                lambda: self.store.put(job_id, fields),
                retries=self._store_write_retries,
                delay=self._store_retry_delay,
                sleep=self._sleep,
                label=f"Terminal write for job {job_id}",
            )
        except Exception:
            # Nobody is left to observe this; the job stays "processing".
            logger.exception(f"Terminal write for job {job_id} failed; job left in processing")
