"""Generation client: OpenAI-compatible chat completions with retry/backoff."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from openai import AsyncOpenAI

from itinerary_worker.core.config import Settings
from itinerary_worker.core.result import Err, ErrorKind, Ok, Result

T = TypeVar("T")
logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

FENCE = "```"


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    retries: int = 3,
    delay: float = 0.5,
    sleep: Sleep = asyncio.sleep,
    label: str = "call",
) -> T:
    """
    Await ``func`` and retry on any exception.

    Makes at most ``retries + 1`` attempts, waiting ``delay * 2**attempt``
    seconds after each failed one. The last error is re-raised.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if attempt >= retries:
                raise
            wait = delay * (2 ** attempt)
            logger.warning(
                f"{label} failed (attempt {attempt + 1}/{retries + 1}): {e}. Retrying in {wait:.2f}s"
            )
            await sleep(wait)
            attempt += 1


def strip_code_fence(text: str) -> str:
    """Drop the opening and closing fence lines of a fenced block."""
    text = text.strip()
    if text.startswith(FENCE):
        lines = text.split("\n")
        if len(lines) >= 3:
            text = "\n".join(lines[1:-1]).strip()
    return text


def parse_payload(text: str) -> Result[Any]:
    """Decode model output (optionally fenced) as JSON."""
    cleaned = strip_code_fence(text)
    try:
        return Ok(json.loads(cleaned))
    except json.JSONDecodeError as e:
        return Err(ErrorKind.MALFORMED_OUTPUT, f"Failed to parse generation response as JSON: {e}")


class GenerationClient:
    """Calls the text-generation capability and returns its decoded payload."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[AsyncOpenAI] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        # The SDK's own retry loop is disabled; retry_with_backoff owns retries.
        self.client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL or None,
            timeout=settings.GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = settings.OPENAI_MODEL
        self.temperature = settings.GENERATION_TEMPERATURE
        self.max_retries = settings.GENERATION_MAX_RETRIES
        self.retry_delay = settings.GENERATION_RETRY_DELAY_SECONDS
        self._sleep = sleep

    async def _complete(self, prompt: str, schema_hint: dict):
        return await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "itinerary", "schema": schema_hint},
            },
            temperature=self.temperature,
        )

    async def generate(self, prompt: str, schema_hint: dict) -> Result[Any]:
        """
        Request structured output and decode it.

        Only the network call is retried. Empty or unparseable output is a
        single-shot MALFORMED_OUTPUT failure.
        """
        try:
            response = await retry_with_backoff(
                lambda: self._complete(prompt, schema_hint),
                retries=self.max_retries,
                delay=self.retry_delay,
                sleep=self._sleep,
                label="Generation request",
            )
        except Exception as e:
            return Err(ErrorKind.GENERATION, f"Generation failed: {e}")

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content or not content.strip():
            return Err(ErrorKind.MALFORMED_OUTPUT, "Generation returned an empty response")

        return parse_payload(content)

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.client.close()
