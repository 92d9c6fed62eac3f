"""Structural contract for generated itineraries."""

from __future__ import annotations

from typing import Any, List

from pydantic import ValidationError

from itinerary_worker.core.result import Err, ErrorKind, Ok, Result
from itinerary_worker.itineraries.models import DayPlan, ItineraryEnvelope


# JSON Schema handed to the model as its structured-output contract.
# Mirrors ItineraryEnvelope; keep the two in sync.
ITINERARY_SHAPE_HINT: dict = {
    "type": "object",
    "properties": {
        "itinerary": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "day": {"type": "integer"},
                    "theme": {"type": "string"},
                    "activities": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "time": {"type": "string"},
                                "description": {"type": "string"},
                                "location": {"type": "string"},
                            },
                            "required": ["time", "description", "location"],
                        },
                    },
                },
                "required": ["day", "theme", "activities"],
            },
        },
    },
    "required": ["itinerary"],
}


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
    actual = type(error.get("input")).__name__
    return f"{location}: {error.get('msg', 'invalid value')} (got {actual})"


def format_violations(exc: ValidationError) -> str:
    """Flatten every field-level violation into one operator-readable line."""
    return "; ".join(_describe(error) for error in exc.errors())


def validate_itinerary(value: Any) -> Result[List[DayPlan]]:
    """
    Check an arbitrary decoded payload against the itinerary contract.

    Returns Ok with the validated day plans, or Err(VALIDATION) listing
    every violation. No I/O.
    """
    try:
        envelope = ItineraryEnvelope.model_validate(value)
    except ValidationError as e:
        return Err(ErrorKind.VALIDATION, f"Validation error: {format_violations(e)}")
    return Ok(envelope.itinerary)
