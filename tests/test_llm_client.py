from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from nexus.errors import LLMParseError, ProviderError, ProviderTimeout, ProviderUnavailable
from nexus.llm_client import ChatCompletions, clean_json, get_model, parse_json_object


def test_clean_json_strips_fences():
    assert clean_json('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_json('```\n{"a": 1}```') == '{"a": 1}'
    assert clean_json('  {"a": 1}  ') == '{"a": 1}'


def test_parse_json_object_rejects_non_objects():
    assert parse_json_object('```JSON\n{"summary": "x"}\n```') == {"summary": "x"}
    with pytest.raises(LLMParseError):
        parse_json_object("[]")
    with pytest.raises(LLMParseError) as exc_info:
        parse_json_object("not json")
    assert exc_info.value.raw_text == "not json"


def test_get_model_prefers_override(make_settings):
    assert get_model(make_settings()) == "openai/gpt-4o-mini"
    assert get_model(make_settings(openrouter_model="anthropic/claude-3.5-sonnet")) == "anthropic/claude-3.5-sonnet"


def _openai_stub(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.mark.asyncio
async def test_complete_requires_key(make_settings):
    create = AsyncMock()
    llm = ChatCompletions(make_settings(), openai_client=_openai_stub(create))

    with pytest.raises(ProviderUnavailable):
        await llm.complete([{"role": "user", "content": "hi"}], caller="test")
    create.assert_not_awaited()


@pytest.mark.asyncio
async def test_complete_returns_first_choice_text(make_settings):
    response = MagicMock()
    response.choices = [SimpleNamespace(message=SimpleNamespace(content="hello"))]
    response.usage = SimpleNamespace(prompt_tokens=3, completion_tokens=1)
    create = AsyncMock(return_value=response)
    llm = ChatCompletions(make_settings(openrouter_api_key="or"), openai_client=_openai_stub(create))

    text = await llm.complete([{"role": "user", "content": "hi"}], caller="test", max_tokens=50)

    assert text == "hello"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["max_tokens"] == 50
    assert kwargs["temperature"] == 0.3


@pytest.mark.asyncio
async def test_complete_with_no_choices_is_empty(make_settings):
    create = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))
    llm = ChatCompletions(make_settings(openrouter_api_key="or"), openai_client=_openai_stub(create))

    assert await llm.complete([], caller="test") == ""


@pytest.mark.asyncio
async def test_complete_wraps_sdk_errors(make_settings):
    create = AsyncMock(side_effect=RuntimeError("502 bad gateway"))
    llm = ChatCompletions(make_settings(openrouter_api_key="or"), openai_client=_openai_stub(create))

    with pytest.raises(ProviderError, match="502 bad gateway"):
        await llm.complete([], caller="test")


@pytest.mark.asyncio
async def test_complete_times_out(make_settings):
    async def never_returns(**_kwargs):
        await asyncio.Event().wait()

    llm = ChatCompletions(
        make_settings(openrouter_api_key="or", llm_timeout_ms=30),
        openai_client=_openai_stub(never_returns),
    )

    with pytest.raises(ProviderTimeout):
        await llm.complete([], caller="test")
