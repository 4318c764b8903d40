"""Base agent class for all AI agents."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Generic, Sequence, TypeVar

from pydantic import BaseModel

from agent_cloud.config import Settings
from agent_cloud.utils.logging import get_logger

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Base class for AI agents using claude-agent-sdk.

    All agents should inherit from this class and implement:
    - name: Agent identifier
    - description: What the agent does
    - system_prompt: Instructions for Claude
    - execute(): Main execution logic

    The agent's response is free text; ``execute`` turns it into a typed
    output and substitutes its own default when the text cannot be parsed.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = get_logger(f"agent.{self.name}")
        self._validate_config()

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent name/identifier."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this agent does."""
        pass

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt for Claude."""
        pass

    @property
    def tools(self) -> list[str]:
        """List of tools this agent can use."""
        return []

    @property
    def model(self) -> str:
        """Model to use for this agent."""
        return self.settings.agent_model

    @property
    def cwd(self) -> str | None:
        """Working directory for the agent's tools."""
        return None

    def _validate_config(self) -> None:
        """Validate that required configuration is present."""
        if not self.settings.has_agent_credentials:
            self.logger.warning(
                "anthropic_api_key not set - relying on the Claude CLI login"
            )

    async def stream(self, messages: Sequence[str]) -> AsyncIterator[str]:
        """Stream the text blocks of the agent's response."""
        from claude_agent_sdk import AssistantMessage, ClaudeAgentOptions, TextBlock, query

        options = ClaudeAgentOptions(
            system_prompt=self.system_prompt,
            allowed_tools=self.tools,
            permission_mode="default",
            cwd=self.cwd,
            model=self.model,
            # Pass API key as environment variable for authentication
            env=(
                {"ANTHROPIC_API_KEY": self.settings.anthropic_api_key}
                if self.settings.anthropic_api_key
                else {}
            ),
        )

        prompt = "\n\n".join(messages)
        async for message in query(prompt=prompt, options=options):
            if isinstance(message, AssistantMessage):
                for block in message.content:
                    if isinstance(block, TextBlock):
                        yield block.text

    async def collect_text(self, messages: Sequence[str]) -> str:
        """Concatenate the streamed response, retrying on transport errors.

        Raises:
            Exception: The last error once retries are exhausted
        """
        attempts = self.settings.agent_max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                chunks = [chunk async for chunk in self.stream(messages)]
                text = "".join(chunks)
                self.logger.debug("agent.response_received", chars=len(text), attempt=attempt)
                return text
            except Exception as e:
                if attempt == attempts:
                    self.logger.error("agent.failed", error=str(e), attempts=attempts)
                    raise
                self.logger.warning("agent.retrying", error=str(e), attempt=attempt)
        # Unreachable: the final attempt either returns or raises
        raise RuntimeError(f"Agent {self.name} produced no response")

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task.

        Args:
            input_data: Typed input for this agent

        Returns:
            Typed output from this agent
        """
        pass
