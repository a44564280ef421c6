"""OpenAI-compatible agent endpoint using openai SDK with native async."""

import asyncio
import logging
import time
from typing import Any

from openai import AsyncOpenAI

from config.config_loader import AgentConfig, AppConfig, require_agent_settings
from triad.models import AgentReply, Citation, Message
from triad.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

_MAX_CITATIONS = 12
_MAX_SNIPPET_CHARS = 180


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _retrieval_items(response: Any) -> list[Any]:
    """Find retrieval items on a completion, wherever the endpoint put them."""
    extra = getattr(response, "model_extra", None) or {}
    retrieval = (
        extra.get("retrieval")
        or _get(extra.get("extra"), "retrieval")
        or _get(response, "retrieval")
    )
    items = _get(retrieval, "items") if retrieval else None
    return list(items) if isinstance(items, (list, tuple)) else []


def parse_citations(items: list[Any]) -> tuple[Citation, ...]:
    """Convert raw retrieval items into Citations, keeping the endpoint's ranking."""
    citations: list[Citation] = []
    for item in items[:_MAX_CITATIONS]:
        filename = _get(item, "file_name") or _get(item, "title") or "unknown.txt"
        chunk = _get(item, "chunk_index")
        if not isinstance(chunk, int) or isinstance(chunk, bool):
            page = _get(item, "page")
            chunk = page if isinstance(page, int) else 0
        snippet = _get(item, "snippet")
        citations.append(
            Citation(
                filename=str(filename),
                chunk=chunk,
                snippet=snippet[:_MAX_SNIPPET_CHARS] if isinstance(snippet, str) else None,
            )
        )
    return tuple(citations)


class OpenAICompatibleProvider(AIProvider):
    """Debate agent served from an OpenAI-compatible chat completions endpoint."""

    def __init__(self, config: AgentConfig) -> None:
        self._config = config
        if not config.api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if not config.base_url:
            raise ProviderError(config.name, f"Missing base URL: {config.base_url_env}")
        self._client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, messages: list[Message]) -> AgentReply:
        if messages:
            logger.debug("Asking %s, last message: %.100s", self._config.name, messages[-1].content)
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=[m.as_dict() for m in messages],
                    temperature=self._config.temperature,
                    max_tokens=self._config.max_tokens,
                    stream=False,
                    extra_body={"include_retrieval_info": True},
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            logger.error("%s timed out after %ds", self._config.name, self._config.timeout_sec)
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            logger.error("%s failed after %.2fs: %s", self._config.name, time.monotonic() - start, exc)
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.choices:
            raise ProviderError(self._config.name, "Response has no choices")

        text = response.choices[0].message.content or ""
        citations = parse_citations(_retrieval_items(response))

        if not text:
            logger.warning("%s returned an empty response after %.2fs", self._config.name, latency)
        else:
            logger.info(
                "%s responded: %.2fs, %d chars, %d citations",
                self._config.name,
                latency,
                len(text),
                len(citations),
            )

        return AgentReply(
            agent=self._config.name,
            text=text,
            citations=citations,
            latency_sec=latency,
        )


def build_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build one provider per configured agent. Raises ConfigError if any setting is missing."""
    require_agent_settings(config)
    return {name: OpenAICompatibleProvider(agent) for name, agent in config.agents.items()}
