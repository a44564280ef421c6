"""FastAPI app streaming debate transcripts as Server-Sent Events."""

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator, Callable
from dataclasses import asdict
from importlib.metadata import PackageNotFoundError, version

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator

from config.config_loader import AppConfig, effective_rounds, load_config
from triad.debate import DebateOrchestrator
from triad.models import TranscriptEntry
from triad.providers.base import AIProvider
from triad.providers.openai_compatible import build_providers

logger = logging.getLogger(__name__)

try:
    VERSION = version("triad-debate")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    VERSION = "0.0.0"

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Cache-Control",
}

_DONE = object()


class DebateRequest(BaseModel):
    """Request to run a streamed debate"""
    topic: str = Field(..., min_length=1, max_length=500)
    rounds: int | None = Field(default=None, ge=1)

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Topic must not be empty")
        return value


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def entry_payload(entry: TranscriptEntry) -> dict:
    return {"type": "message", "entry": asdict(entry)}


async def stream_debate(
    topic: str,
    rounds: int | None,
    resolve: Callable[[], tuple[AppConfig, dict[str, AIProvider]]],
) -> AsyncIterator[str]:
    """Yield start, one message per entry, then complete or error."""
    yield sse_event({"type": "start", "topic": topic})

    queue: asyncio.Queue = asyncio.Queue()

    async def produce() -> None:
        try:
            config, providers = resolve()
            orchestrator = DebateOrchestrator(config, providers, mode="streaming")
            await orchestrator.run(
                topic,
                num_rounds=effective_rounds(config, rounds),
                on_entry=queue.put_nowait,
            )
        except Exception as exc:
            logger.error("Error in debate stream: %s", exc)
            queue.put_nowait(exc)
        finally:
            queue.put_nowait(_DONE)

    producer = asyncio.create_task(produce())
    try:
        failed = False
        while True:
            item = await queue.get()
            if item is _DONE:
                break
            if isinstance(item, Exception):
                failed = True
                yield sse_event({"type": "error", "message": str(item) or "Unknown error"})
                continue
            yield sse_event(entry_payload(item))
        if not failed:
            yield sse_event({"type": "complete"})
    finally:
        await producer


def create_app(
    config: AppConfig | None = None,
    providers: dict[str, AIProvider] | None = None,
) -> FastAPI:
    """Build the app. Config and agent clients are loaded on first use when not given."""
    app = FastAPI(
        title="Triad Debate API",
        description="Streams a moderated two-agent debate",
        version=VERSION,
    )
    app.state.config = config
    app.state.providers = providers

    def resolve() -> tuple[AppConfig, dict[str, AIProvider]]:
        if app.state.config is None:
            app.state.config = load_config()
        if app.state.providers is None:
            app.state.providers = build_providers(app.state.config)
        return app.state.config, app.state.providers

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": VERSION}

    @app.post("/api/debate")
    async def debate(body: DebateRequest):
        """Run a debate, streaming each transcript entry as it is produced."""
        logger.info("Starting debate via API: '%s'", body.topic)
        return StreamingResponse(
            stream_debate(body.topic, body.rounds, resolve),
            media_type="text/event-stream",
            headers=_SSE_HEADERS,
        )

    return app


def main() -> None:
    import uvicorn

    from triad.cli import setup_logging

    load_dotenv()
    setup_logging(verbose=False)
    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":
    main()
