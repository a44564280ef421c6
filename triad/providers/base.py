"""Abstract base for agent inference clients."""

from abc import ABC, abstractmethod

from triad.models import AgentReply, Message


class ProviderError(Exception):
    """Raised when an inference call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for the endpoint behind one debate agent."""

    @abstractmethod
    def name(self) -> str:
        """Return the agent name ('A', 'B' or 'Mediator')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the model identifier sent with each request."""
        ...

    @abstractmethod
    async def generate(self, messages: list[Message]) -> AgentReply:
        """Generate the agent's next turn.

        Args:
            messages: Full role-tagged context, system message first.

        Returns:
            AgentReply with text and any retrieval citations.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...
