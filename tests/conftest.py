"""Shared pytest fixtures."""

import asyncio
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from config.config_loader import AppConfig, load_config
from triad.models import AgentReply, Citation, Message
from triad.providers.base import AIProvider, ProviderError

AGENT_ENV = {
    "AGENT_A_BASE_URL": "http://agent-a.test/v1",
    "AGENT_A_KEY": "key-a",
    "AGENT_B_BASE_URL": "http://agent-b.test/v1",
    "AGENT_B_KEY": "key-b",
    "AGENT_MEDIATOR_BASE_URL": "http://mediator.test/v1",
    "AGENT_MEDIATOR_KEY": "key-m",
}

SETTINGS_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


class StubProvider(AIProvider):
    """Test double agent: canned replies, call log, optional latency."""

    def __init__(
        self,
        agent: str,
        replies: list[str] | Callable[[list[Message]], str] | None = None,
        citations: tuple[Citation, ...] = (),
        delay: float = 0.0,
        fail_with: Exception | None = None,
    ) -> None:
        self._agent = agent
        self._replies = replies
        self._citations = citations
        self._delay = delay
        self._fail_with = fail_with
        self.calls: list[list[Message]] = []
        self.windows: list[tuple[float, float]] = []

    def name(self) -> str:
        return self._agent

    def model_string(self) -> str:
        return "stub-model"

    async def generate(self, messages: list[Message]) -> AgentReply:
        start = time.monotonic()
        self.calls.append(list(messages))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_with is not None:
            raise self._fail_with
        if callable(self._replies):
            text = self._replies(messages)
        elif self._replies:
            text = self._replies[min(len(self.calls) - 1, len(self._replies) - 1)]
        else:
            text = f"{self._agent} reply {len(self.calls)}"
        self.windows.append((start, time.monotonic()))
        return AgentReply(agent=self._agent, text=text, citations=self._citations)


def failing(agent: str, message: str = "API error") -> StubProvider:
    return StubProvider(agent, fail_with=ProviderError(agent, message))


@pytest.fixture
def agent_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    for key, value in AGENT_ENV.items():
        monkeypatch.setenv(key, value)
    return AGENT_ENV


@pytest.fixture
def app_config(agent_env) -> AppConfig:
    return load_config(SETTINGS_PATH)


@pytest.fixture
def unconfigured_config(monkeypatch: pytest.MonkeyPatch) -> AppConfig:
    for key in AGENT_ENV:
        monkeypatch.delenv(key, raising=False)
    return load_config(SETTINGS_PATH)


@pytest.fixture
def stub_providers() -> dict[str, StubProvider]:
    return {
        "A": StubProvider("A", ["A says yes [notes.txt, chunk 2]."]),
        "B": StubProvider("B", ["I have no relevant content about this topic in my knowledge base."]),
        "Mediator": StubProvider(
            "Mediator",
            ["Restated.\n[A_PROMPT]\nArgue yes.\n[B_PROMPT]\nArgue no."],
        ),
    }


async def no_sleep(seconds: float) -> None:
    return None
