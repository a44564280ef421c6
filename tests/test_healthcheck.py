"""Unit tests for triad/healthcheck.py — no real API calls."""

import asyncio

from triad.healthcheck import run_health_checks
from tests.conftest import StubProvider, failing


async def test_all_agents_pass():
    providers = {
        "A": StubProvider("A", ["Hello, I am working!"]),
        "Mediator": StubProvider("Mediator", ["Hello, I am working!"]),
    }

    results = await run_health_checks(providers)

    assert results == {"A": (True, ""), "Mediator": (True, "")}
    assert providers["A"].calls[0][-1].role == "user"


async def test_one_agent_fails():
    providers = {"A": StubProvider("A"), "B": failing("B", "403 Forbidden")}

    results = await run_health_checks(providers)

    assert results["A"] == (True, "")
    ok, err = results["B"]
    assert ok is False
    assert "403" in err


async def test_empty_reply_counts_as_failure():
    results = await run_health_checks({"B": StubProvider("B", ["   "])})
    assert results["B"] == (False, "empty response")


async def test_empty_providers():
    assert await run_health_checks({}) == {}


async def test_timeout_counts_as_failure(monkeypatch):
    import triad.healthcheck as hc

    monkeypatch.setattr(hc, "_TIMEOUT_SEC", 0.05)
    results = await run_health_checks({"slow": StubProvider("slow", delay=9999)})

    ok, err = results["slow"]
    assert ok is False
    assert err == "TimeoutError"
