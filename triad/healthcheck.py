"""Agent health checks — ping each endpoint before relying on it."""

import asyncio
import logging

from triad.models import Message
from triad.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_MESSAGES = [
    Message("system", "You are a helpful assistant. Respond with a simple test message."),
    Message("user", 'Say "Hello, I am working!" and nothing else.'),
]
_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: AIProvider) -> tuple[str, bool, str]:
    """Ping a single agent. Returns (name, ok, error_message)."""
    try:
        reply = await asyncio.wait_for(
            provider.generate(list(_PING_MESSAGES)),
            timeout=_TIMEOUT_SEC,
        )
    except Exception as exc:
        return name, False, str(exc) or type(exc).__name__
    if not reply.text.strip():
        return name, False, "empty response"
    return name, True, ""


async def run_health_checks(
    providers: dict[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping all agents in parallel.

    Returns:
        Dict mapping agent name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, p) for n, p in providers.items()))
    for name, ok, err in results:
        if not ok:
            logger.warning("Agent %s failed health check: %s", name, err)
    return {name: (ok, err) for name, ok, err in results}
