"""Pure dataclasses for the debate pipeline. No logic, no deps."""

from dataclasses import dataclass, field

# Transcript phase tags
PHASE_PROMPTS = "Prompts"
PHASE_FRAMING = "Framing"
PHASE_ANSWER = "Answer"
PHASE_NOTE = "Moderator Note"
PHASE_RECAP = "Round Recap"
PHASE_NEXT_ROUND = "Next Round"


@dataclass(frozen=True)
class Message:
    role: str              # "system", "user" or "assistant"
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Citation:
    filename: str
    chunk: int             # chunk index, or page number when no chunk is given
    snippet: str | None = None


@dataclass(frozen=True)
class AgentReply:
    agent: str
    text: str
    citations: tuple[Citation, ...] = ()
    latency_sec: float = 0.0


@dataclass(frozen=True)
class TranscriptEntry:
    role: str              # "A", "B" or "Mediator"
    round: int
    phase: str
    text: str
    citations: tuple[Citation, ...] = ()


@dataclass(frozen=True)
class DebateResult:
    topic: str
    transcript: tuple[TranscriptEntry, ...]
    histories: dict[str, tuple[Message, ...]] = field(default_factory=dict)
    mode: str = "batch"
