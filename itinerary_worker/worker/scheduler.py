"""Schedulers that keep detached generation work alive after the response."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Set

from itinerary_worker.core.config import Settings

logger = logging.getLogger(__name__)

GenerationRunner = Callable[[str, str, int], Awaitable[Any]]


class GenerationScheduler(Protocol):
    """Interface for handing off a job's generation."""

    def dispatch(self, runner: GenerationRunner, job_id: str, destination: str, duration_days: int) -> None:
        ...

    async def drain(self, timeout: Optional[float] = None) -> None:
        ...


class InProcessScheduler:
    """
    Runs generations as asyncio tasks on the serving event loop.

    Tasks are referenced until they finish; ``drain`` is the join point the
    application awaits before shutting down.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, runner: GenerationRunner, job_id: str, destination: str, duration_days: int) -> None:
        task = asyncio.get_running_loop().create_task(
            runner(job_id, destination, duration_days),
            name=f"itinerary-{job_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info(f"Dispatched in-process generation for job {job_id}")

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Generation task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Generation task {task.get_name()} crashed: {exc!r}", exc_info=exc)

    async def drain(self, timeout: Optional[float] = None) -> None:
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} pending generation task(s)")
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} generation task(s) still running at shutdown")


class CeleryScheduler:
    """Sends generations to the Celery queue; the worker runs them."""

    def __init__(self, celery_app, queue: str, task_name: str) -> None:
        self.celery_app = celery_app
        self.queue = queue
        self.task_name = task_name

    def dispatch(self, runner: GenerationRunner, job_id: str, destination: str, duration_days: int) -> None:
        async_result = self.celery_app.send_task(
            self.task_name,
            args=[job_id, destination, duration_days],
            queue=self.queue,
        )
        logger.info(f"Enqueued generation task {async_result.id} for job {job_id}")

    async def drain(self, timeout: Optional[float] = None) -> None:
        # The broker owns queued work.
        return None


def get_scheduler(settings: Settings) -> GenerationScheduler:
    """Factory for the configured scheduler backend."""
    if settings.SCHEDULER_BACKEND == "celery":
        from itinerary_worker.worker.celery_app import celery_app, DEFAULT_QUEUE
        from itinerary_worker.worker.tasks import GENERATE_TASK_NAME

        return CeleryScheduler(celery_app, DEFAULT_QUEUE, GENERATE_TASK_NAME)
    return InProcessScheduler()
