"""Tests for triad/providers/openai_compatible.py — SDK client is mocked."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.config_loader import AgentConfig, ConfigError
from triad.models import Citation, Message
from triad.providers.base import ProviderError
from triad.providers.openai_compatible import (
    OpenAICompatibleProvider,
    build_providers,
    parse_citations,
)


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(
        name="B",
        base_url_env="AGENT_B_BASE_URL",
        api_key_env="AGENT_B_KEY",
        model="n/a",
        temperature=0.35,
        max_tokens=800,
        timeout_sec=5,
        base_url="http://agent-b.test/v1",
        api_key="key-b",
    )


def _completion(text: str | None, extra: dict | None = None) -> SimpleNamespace:
    message = SimpleNamespace(content=text)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], model_extra=extra or {})


def _provider_with(agent_config: AgentConfig, create: AsyncMock) -> OpenAICompatibleProvider:
    provider = OpenAICompatibleProvider(agent_config)
    client = MagicMock()
    client.chat.completions.create = create
    provider._client = client
    return provider


async def test_generate_sends_history_and_parameters(agent_config):
    create = AsyncMock(return_value=_completion("Answer."))
    provider = _provider_with(agent_config, create)
    messages = [Message("system", "Use ONLY the KB."), Message("user", "Opening statement.")]

    reply = await provider.generate(messages)

    assert reply.text == "Answer."
    assert reply.agent == "B"
    kwargs = create.await_args.kwargs
    assert kwargs["messages"] == [
        {"role": "system", "content": "Use ONLY the KB."},
        {"role": "user", "content": "Opening statement."},
    ]
    assert kwargs["temperature"] == 0.35
    assert kwargs["max_tokens"] == 800
    assert kwargs["stream"] is False
    assert kwargs["extra_body"] == {"include_retrieval_info": True}


async def test_generate_parses_retrieval_citations(agent_config):
    extra = {
        "retrieval": {
            "items": [
                {"file_name": "karamazov.txt", "chunk_index": 7, "snippet": "x" * 400},
                {"title": "notes.pdf", "page": 3},
            ]
        }
    }
    provider = _provider_with(agent_config, AsyncMock(return_value=_completion("Cited.", extra)))

    reply = await provider.generate([Message("user", "q")])

    assert reply.citations[0].filename == "karamazov.txt"
    assert reply.citations[0].chunk == 7
    assert len(reply.citations[0].snippet) == 180
    assert reply.citations[1] == Citation(filename="notes.pdf", chunk=3, snippet=None)


async def test_generate_reads_nested_extra_retrieval(agent_config):
    extra = {"extra": {"retrieval": {"items": [{"file_name": "a.txt", "chunk_index": 1}]}}}
    provider = _provider_with(agent_config, AsyncMock(return_value=_completion("ok", extra)))

    reply = await provider.generate([Message("user", "q")])

    assert reply.citations == (Citation("a.txt", 1),)


async def test_empty_text_is_returned_not_raised(agent_config):
    provider = _provider_with(agent_config, AsyncMock(return_value=_completion(None)))
    reply = await provider.generate([Message("user", "q")])
    assert reply.text == ""
    assert reply.citations == ()


async def test_no_choices_raises(agent_config):
    response = SimpleNamespace(choices=[], model_extra={})
    provider = _provider_with(agent_config, AsyncMock(return_value=response))
    with pytest.raises(ProviderError, match="no choices"):
        await provider.generate([Message("user", "q")])


async def test_sdk_error_wrapped(agent_config):
    provider = _provider_with(agent_config, AsyncMock(side_effect=RuntimeError("401 Unauthorized")))
    with pytest.raises(ProviderError, match="401") as excinfo:
        await provider.generate([Message("user", "q")])
    assert excinfo.value.provider_name == "B"


async def test_timeout_wrapped(agent_config):
    from dataclasses import replace

    async def hang(**kwargs):
        await asyncio.sleep(9999)

    provider = _provider_with(replace(agent_config, timeout_sec=0), AsyncMock(side_effect=hang))
    with pytest.raises(ProviderError, match="timed out"):
        await provider.generate([Message("user", "q")])


def test_parse_citations_caps_and_defaults():
    items = [{"chunk_index": "nope"} for _ in range(20)]
    citations = parse_citations(items)
    assert len(citations) == 12
    assert citations[0] == Citation(filename="unknown.txt", chunk=0, snippet=None)


def test_missing_key_raises(agent_config):
    from dataclasses import replace

    with pytest.raises(ProviderError, match="AGENT_B_KEY"):
        OpenAICompatibleProvider(replace(agent_config, api_key=""))


def test_build_providers(app_config):
    providers = build_providers(app_config)
    assert set(providers) == {"A", "B", "Mediator"}
    assert providers["Mediator"].name() == "Mediator"
    assert providers["A"].model_string() == "n/a"


def test_build_providers_requires_settings(unconfigured_config):
    with pytest.raises(ConfigError):
        build_providers(unconfigured_config)
