"""Job store adapter (keyed upsert of job fields)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from itinerary_worker.itineraries.models import PROCESSING, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    """Write-forward persistence for job records."""

    async def put(self, job_id: str, fields: Dict[str, Any]) -> None:
        """Upsert ``fields`` into the record keyed by ``job_id``."""
        ...

    async def get(self, job_id: str) -> Optional[dict]:
        """Read a record for polling clients. The lifecycle never calls this."""
        ...


class MongoJobStore:
    """Job records as documents keyed by ``_id``."""

    def __init__(self, collection):
        self._collection = collection

    async def put(self, job_id: str, fields: Dict[str, Any]) -> None:
        if fields.get("status") in TERMINAL_STATUSES:
            # Finish once: a terminal record never changes again.
            result = await self._collection.update_one(
                {"_id": job_id, "status": PROCESSING},
                {"$set": fields},
            )
            if result.matched_count == 0:
                logger.warning(
                    f"Skipped terminal write for job {job_id}: record missing or already terminal"
                )
            return

        await self._collection.update_one({"_id": job_id}, {"$set": fields}, upsert=True)

    async def get(self, job_id: str) -> Optional[dict]:
        doc = await self._collection.find_one({"_id": job_id})
        if not doc:
            return None
        doc["jobId"] = str(doc.pop("_id"))
        return doc
