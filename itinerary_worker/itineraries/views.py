"""Itinerary job API endpoints."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import JSONResponse

from itinerary_worker.core.dependencies import get_job_service, get_store
from itinerary_worker.core.exceptions import BadRequestException, NotFoundException
from itinerary_worker.itineraries.models import JobCreateResponse, JobRecord
from itinerary_worker.itineraries.service import JobOrchestrator
from itinerary_worker.itineraries.store import JobStore


router = APIRouter(prefix="/api", tags=["Itineraries"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def create_itinerary_job(
    request: Request,
    service: JobOrchestrator = Depends(get_job_service),
):
    """
    Accept a destination and trip length and start generating in the background.

    Returns the job id immediately; poll `/api/jobs/{jobId}` for the result.
    """
    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestException("Invalid JSON")
    if not isinstance(body, dict):
        raise BadRequestException("Invalid JSON")

    job_id = await service.create_job(body.get("destination"), body.get("durationDays"))
    return JSONResponse(
        JobCreateResponse(job_id=job_id).model_dump(by_alias=True),
        status_code=status.HTTP_202_ACCEPTED,
    )


@router.get("/jobs/{job_id}")
async def get_itinerary_job(
    job_id: str = Path(..., description="Job ID"),
    store: JobStore = Depends(get_store),
):
    doc = await store.get(job_id)
    if not doc:
        raise NotFoundException("Job not found")
    return JobRecord.model_validate(doc).model_dump(by_alias=True)
