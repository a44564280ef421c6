"""Debate orchestration: framing, concurrent debater rounds, mediator handoff."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

from config.config_loader import AppConfig, MODES, require_agent_settings
from triad.conversation import ConversationState
from triad.models import (
    PHASE_ANSWER,
    PHASE_FRAMING,
    PHASE_NEXT_ROUND,
    PHASE_NOTE,
    PHASE_PROMPTS,
    PHASE_RECAP,
    AgentReply,
    DebateResult,
    Message,
    TranscriptEntry,
)
from triad.prompts import extract_prompts, strip_instruction_blocks
from triad.providers.base import AIProvider

logger = logging.getLogger(__name__)

EntrySink = Callable[[TranscriptEntry], None]
Sleeper = Callable[[float], Awaitable[None]]


class DebateOrchestrator:
    """Runs one scripted debate between debaters A and B and the Mediator.

    ``mode="batch"`` emits a Prompts entry, then per round A, B and a
    Moderator Note that also carries the next instructions.
    ``mode="streaming"`` splits the mediator's work into Framing, Round Recap
    and Next Round entries and paces emission for a live audience.

    The configuration is checked once here; a missing endpoint or key raises
    ConfigError before any agent is called.
    """

    def __init__(
        self,
        config: AppConfig,
        providers: dict[str, AIProvider],
        mode: str | None = None,
        sleep: Sleeper = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        require_agent_settings(config)
        missing = [n for n in ("A", "B", "Mediator") if n not in providers]
        if missing:
            raise ValueError(f"No provider for agent(s): {', '.join(missing)}")

        self._config = config
        self._prompts = config.prompts
        self._providers = providers
        self.mode = mode or config.defaults.mode
        if self.mode not in MODES:
            raise ValueError(f"Unknown debate mode '{self.mode}', expected one of {MODES}")
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def streaming(self) -> bool:
        return self.mode == "streaming"

    def _persona(self, agent: str) -> str:
        personas = self._prompts.personas
        if agent == "Mediator" and self.streaming:
            return personas.get("Mediator_streaming") or personas.get("Mediator", "")
        return personas.get(agent, "")

    async def _pause(self, range_ms: tuple[int, int]) -> None:
        if not self.streaming:
            return
        low, high = range_ms
        await self._sleep(self._rng.uniform(low, high) / 1000)

    def _stage_instruction(self, round_num: int) -> str:
        stages = self._prompts.stage_instructions
        if not stages:
            return ""
        return stages[min(round_num - 1, len(stages) - 1)]

    async def _ask_debaters(
        self, a_messages: list[Message], b_messages: list[Message]
    ) -> tuple[AgentReply, AgentReply]:
        """Query A and B concurrently. If either fails, the other is cancelled."""
        tasks = [
            asyncio.create_task(self._providers["A"].generate(a_messages)),
            asyncio.create_task(self._providers["B"].generate(b_messages)),
        ]
        try:
            a_reply, b_reply = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return a_reply, b_reply

    async def run(
        self,
        topic: str,
        num_rounds: int | None = None,
        on_entry: EntrySink | None = None,
    ) -> DebateResult:
        """Run the full debate.

        Args:
            topic: The question being debated.
            num_rounds: Number of rounds (default: from config).
            on_entry: Optional sink invoked with each entry as it is produced.

        Returns:
            DebateResult with the complete transcript and history snapshots.

        Raises:
            ValueError: If topic is empty or num_rounds is not positive.
            ProviderError: If any agent call fails. The run is abandoned.
        """
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("Topic must not be empty")
        rounds = num_rounds if num_rounds is not None else self._config.defaults.rounds
        if rounds < 1:
            raise ValueError(f"Round count must be positive, got {rounds}")

        prompts = self._prompts
        pacing = self._config.defaults.pacing
        a_state = ConversationState("A", self._persona("A"))
        b_state = ConversationState("B", self._persona("B"))
        m_state = ConversationState("Mediator", self._persona("Mediator"))
        transcript: list[TranscriptEntry] = []

        def emit(role: str, round_num: int, phase: str, reply: AgentReply, text: str | None = None) -> None:
            entry = TranscriptEntry(
                role=role,
                round=round_num,
                phase=phase,
                text=reply.text if text is None else text,
                citations=reply.citations,
            )
            transcript.append(entry)
            if on_entry is not None:
                on_entry(entry)

        logger.info("Starting %s debate: '%s' (%d rounds)", self.mode, topic, rounds)

        framing_template = prompts.framing_streaming if self.streaming else prompts.framing
        framing_prompt = framing_template.format(topic=topic)
        framing = await self._providers["Mediator"].generate(m_state.with_turn(framing_prompt))
        m_state.record(framing_prompt, framing.text)
        if self.streaming:
            emit("Mediator", 1, PHASE_FRAMING, framing, text=strip_instruction_blocks(framing.text))
        else:
            emit("Mediator", 1, PHASE_PROMPTS, framing)

        extracted = extract_prompts(framing.text)
        if not (extracted.a and extracted.b):
            logger.info("Framing gave no usable prompt for some debater, using opening default")
        a_prompt, b_prompt = extracted.or_default(prompts.opening_default)

        for round_num in range(1, rounds + 1):
            logger.info("Round %d: asking debaters", round_num)

            a_reply, b_reply = await self._ask_debaters(
                a_state.with_turn(a_prompt), b_state.with_turn(b_prompt)
            )

            emit("A", round_num, PHASE_ANSWER, a_reply)
            await self._pause(pacing.answer_ms)
            emit("B", round_num, PHASE_ANSWER, b_reply)

            a_state.record(a_prompt, a_reply.text)
            b_state.record(b_prompt, b_reply.text)

            is_last = round_num == rounds
            if self.streaming:
                mediator_prompt = prompts.recap.format(
                    round=round_num, answer_a=a_reply.text, answer_b=b_reply.text
                )
            else:
                mediator_prompt = prompts.note.format(
                    round=round_num,
                    answer_a=a_reply.text,
                    answer_b=b_reply.text,
                    follow=prompts.closing_follow if is_last else prompts.note_follow,
                )

            logger.info("Round %d: asking mediator", round_num)
            note = await self._providers["Mediator"].generate(m_state.with_turn(mediator_prompt))
            await self._pause(pacing.recap_ms)
            emit("Mediator", round_num, PHASE_RECAP if self.streaming else PHASE_NOTE, note)
            m_state.record(mediator_prompt, note.text)

            if is_last:
                break

            if self.streaming:
                await self._pause(pacing.next_round_ms)
                next_prompt = prompts.next_round.format(
                    next_round=round_num + 1,
                    stage_instruction=self._stage_instruction(round_num),
                )
                handoff = await self._providers["Mediator"].generate(m_state.with_turn(next_prompt))
                emit("Mediator", round_num, PHASE_NEXT_ROUND, handoff)
                m_state.record(next_prompt, handoff.text)
                fallback = prompts.followup_streaming_default.format(round=round_num + 1)
            else:
                handoff = note
                fallback = prompts.followup_default

            extracted = extract_prompts(handoff.text)
            if not (extracted.a and extracted.b):
                logger.info("Round %d: mediator gave no usable prompt for some debater, using fallback", round_num)
            a_prompt, b_prompt = extracted.or_default(fallback)

        logger.info("Debate complete: %d transcript entries", len(transcript))

        return DebateResult(
            topic=topic,
            transcript=tuple(transcript),
            histories={
                "A": a_state.snapshot(),
                "B": b_state.snapshot(),
                "Mediator": m_state.snapshot(),
            },
            mode=self.mode,
        )


async def run_debate(
    topic: str,
    config: AppConfig,
    providers: dict[str, AIProvider],
    num_rounds: int | None = None,
    mode: str | None = None,
    on_entry: EntrySink | None = None,
) -> DebateResult:
    """Build an orchestrator and run one debate with it."""
    orchestrator = DebateOrchestrator(config, providers, mode=mode)
    return await orchestrator.run(topic, num_rounds=num_rounds, on_entry=on_entry)
