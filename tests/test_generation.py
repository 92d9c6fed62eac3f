from __future__ import annotations

import json

import httpx
import openai
import pytest

from itinerary_worker.core.config import Settings
from itinerary_worker.core.result import Err, ErrorKind, Ok
from itinerary_worker.itineraries.generation import (
    GenerationClient,
    parse_payload,
    retry_with_backoff,
    strip_code_fence,
)
from itinerary_worker.itineraries.schema import ITINERARY_SHAPE_HINT

from tests.conftest import VALID_PAYLOAD, completion, fake_openai


def _connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://llm.test/v1/chat/completions"))


def test_strip_code_fence_removes_first_and_last_lines() -> None:
    fenced = '```json\n{"a": 1}\n```'
    assert strip_code_fence(fenced) == '{"a": 1}'


def test_strip_code_fence_leaves_plain_text() -> None:
    assert strip_code_fence('  {"a": 1}\n') == '{"a": 1}'


def test_fenced_and_plain_payloads_parse_identically() -> None:
    body = json.dumps(VALID_PAYLOAD, indent=2)

    fenced = parse_payload(f"```\n{body}\n```")
    plain = parse_payload(body)

    assert isinstance(fenced, Ok)
    assert fenced == plain


def test_unbalanced_fence_is_a_parse_error() -> None:
    result = parse_payload('```json\n{"itinerary": []}')

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.MALFORMED_OUTPUT
    assert "Failed to parse" in result.message


def test_non_json_text_is_a_parse_error() -> None:
    result = parse_payload("Sure! Here is your trip to Paris.")

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.MALFORMED_OUTPUT


@pytest.mark.anyio
async def test_retry_with_backoff_doubles_delay_until_success(sleeps, fake_sleep) -> None:
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 4:
            raise RuntimeError("provider unavailable")
        return "ok"

    result = await retry_with_backoff(flaky, retries=3, delay=0.5, sleep=fake_sleep)

    assert result == "ok"
    assert len(attempts) == 4
    assert sleeps == [0.5, 1.0, 2.0]


@pytest.mark.anyio
async def test_retry_with_backoff_reraises_last_error(sleeps, fake_sleep) -> None:
    calls = []

    async def always_fails():
        calls.append(1)
        raise RuntimeError(f"failure {len(calls)}")

    with pytest.raises(RuntimeError, match="failure 4"):
        await retry_with_backoff(always_fails, retries=3, delay=0.5, sleep=fake_sleep)

    assert len(calls) == 4
    assert sleeps == [0.5, 1.0, 2.0]


@pytest.mark.anyio
async def test_generate_sends_prompt_and_shape_hint(settings, fake_sleep) -> None:
    client, completions = fake_openai([completion(json.dumps(VALID_PAYLOAD))])
    generator = GenerationClient(settings, client=client, sleep=fake_sleep)

    result = await generator.generate("Plan Paris", ITINERARY_SHAPE_HINT)

    assert result == Ok(VALID_PAYLOAD)
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"] == [{"role": "user", "content": "Plan Paris"}]
    assert call["response_format"]["type"] == "json_schema"
    assert call["response_format"]["json_schema"]["schema"] is ITINERARY_SHAPE_HINT


@pytest.mark.anyio
async def test_generate_recovers_after_three_failures(settings, sleeps, fake_sleep) -> None:
    client, completions = fake_openai(
        [
            _connection_error(),
            RuntimeError("boom"),
            _connection_error(),
            completion("```json\n" + json.dumps(VALID_PAYLOAD) + "\n```"),
        ]
    )
    generator = GenerationClient(settings, client=client, sleep=fake_sleep)

    result = await generator.generate("Plan Paris", ITINERARY_SHAPE_HINT)

    assert result == Ok(VALID_PAYLOAD)
    assert len(completions.calls) == 4
    assert sleeps == [0.5, 1.0, 2.0]


@pytest.mark.anyio
async def test_generate_gives_up_after_retry_bound(settings, sleeps, fake_sleep) -> None:
    client, completions = fake_openai([_connection_error() for _ in range(4)])
    generator = GenerationClient(settings, client=client, sleep=fake_sleep)

    result = await generator.generate("Plan Paris", ITINERARY_SHAPE_HINT)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.GENERATION
    assert result.message.startswith("Generation failed: ")
    assert len(completions.calls) == 4
    assert len(sleeps) == 3


@pytest.mark.anyio
async def test_malformed_output_is_not_retried(settings, sleeps, fake_sleep) -> None:
    client, completions = fake_openai([completion("not json at all")])
    generator = GenerationClient(settings, client=client, sleep=fake_sleep)

    result = await generator.generate("Plan Paris", ITINERARY_SHAPE_HINT)

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.MALFORMED_OUTPUT
    assert len(completions.calls) == 1
    assert sleeps == []


@pytest.mark.anyio
@pytest.mark.parametrize("content", [None, "", "   "])
async def test_empty_content_is_malformed_output(settings, fake_sleep, content) -> None:
    client, _ = fake_openai([completion(content)])
    generator = GenerationClient(settings, client=client, sleep=fake_sleep)

    result = await generator.generate("Plan Paris", ITINERARY_SHAPE_HINT)

    assert result == Err(ErrorKind.MALFORMED_OUTPUT, "Generation returned an empty response")


def test_default_client_disables_sdk_retries() -> None:
    settings = Settings(
        OPENAI_API_KEY="k",
        OPENAI_BASE_URL="https://generativelanguage.googleapis.com/v1beta/openai/",
        GENERATION_MAX_RETRIES=5,
    )

    generator = GenerationClient(settings)

    assert generator.client.max_retries == 0
    assert "generativelanguage.googleapis.com" in str(generator.client.base_url)
    assert generator.max_retries == 5
