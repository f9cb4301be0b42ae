"""Completion service interface definitions."""

from typing import AsyncIterator, Protocol

from pydantic import BaseModel, ConfigDict, Field


class CompletionRequest(BaseModel):
    """A single chat completion request."""

    model: str
    system_prompt: str
    user_content: str
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    stream: bool = False

    model_config = ConfigDict(frozen=True)


class ModelInterface(Protocol):
    """Protocol for the remote text-completion service."""

    async def stream_completion(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Start a streamed completion.

        Awaiting this call opens the stream; failures to open it are raised
        here. The returned iterator yields text fragments in the order they
        arrive and may itself raise if the transport fails mid-stream.

        Args:
            request: The completion request

        Returns:
            Async iterator of text fragments
        """
        ...

    async def complete(self, request: CompletionRequest) -> str:
        """Run a completion and return the whole message text.

        Args:
            request: The completion request

        Returns:
            The message content
        """
        ...
