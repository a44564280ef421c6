"""Per-agent message history sent as context on every inference call."""

from triad.models import Message


class ConversationState:
    """Append-only, role-tagged history for one agent.

    Starts with the agent's system persona. Order is call order and is never
    rearranged or pruned within a run.
    """

    def __init__(self, agent: str, system_prompt: str) -> None:
        self.agent = agent
        self._messages: list[Message] = [Message("system", system_prompt)]

    def __len__(self) -> int:
        return len(self._messages)

    def messages(self) -> list[Message]:
        return list(self._messages)

    def with_turn(self, content: str) -> list[Message]:
        """History plus a pending user message, without recording it."""
        return [*self._messages, Message("user", content)]

    def record(self, prompt: str, response: str) -> None:
        """Append one completed exchange."""
        self._messages.append(Message("user", prompt))
        self._messages.append(Message("assistant", response))

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._messages)
