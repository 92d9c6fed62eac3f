"""Itinerary job models."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


JobStatus = Literal["processing", "completed", "failed"]

PROCESSING: JobStatus = "processing"
COMPLETED: JobStatus = "completed"
FAILED: JobStatus = "failed"
TERMINAL_STATUSES = frozenset({COMPLETED, FAILED})


class Activity(BaseModel):
    time: StrictStr
    description: StrictStr
    location: StrictStr


class DayPlan(BaseModel):
    day: StrictInt
    theme: StrictStr
    activities: List[Activity]

    @field_validator("day", mode="before")
    @classmethod
    def integral_float_day(cls, value):
        # JSON numbers like 2.0 are whole days
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class ItineraryEnvelope(BaseModel):
    """Top-level shape the generation endpoint must return."""

    itinerary: List[DayPlan]


class ItineraryRequest(BaseModel):
    """Inputs accepted by job creation."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    destination: StrictStr = Field(..., min_length=1)
    duration_days: StrictInt = Field(..., alias="durationDays", gt=0)


class JobCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., serialization_alias="jobId")


class JobRecord(BaseModel):
    """Persisted job document as read by polling clients."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    status: JobStatus
    destination: str
    duration_days: int = Field(..., alias="durationDays")
    created_at: str = Field(..., alias="createdAt")
    completed_at: Optional[str] = Field(default=None, alias="completedAt")
    itinerary: Optional[List[DayPlan]] = None
    error: Optional[str] = None
