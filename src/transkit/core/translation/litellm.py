"""LiteLLM-based completion client."""

from typing import Any, AsyncIterator, Optional

from litellm import acompletion

from transkit.core.errors import APIError, classify_error
from transkit.core.translation.interface import CompletionRequest, ModelInterface
from transkit.utils.logging import get_logger

logger = get_logger(__name__)


def _fragment_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""


class LiteLLMClient(ModelInterface):
    """LiteLLM-based implementation of the model interface."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_base: Base URL of an OpenAI-compatible endpoint. Defaults to
                the provider's own endpoint.
            api_key: API key. Defaults to the provider's environment variable.
        """
        self.api_base = api_base
        self.api_key = api_key
        self._logger = logger

    def _create_messages(self, request: CompletionRequest) -> list[dict]:
        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.user_content},
        ]

    def _connection_params(self) -> dict:
        params = {}
        if self.api_base:
            params["api_base"] = self.api_base
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def stream_completion(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Open a streamed completion and return an iterator over its fragments.

        Args:
            request: The completion request

        Returns:
            Async iterator of text fragments
        """
        logger.debug("Opening completion stream", model=request.model)
        response = await acompletion(
            model=request.model,
            messages=self._create_messages(request),
            temperature=request.temperature,
            stream=True,
            drop_params=True,
            **self._connection_params(),
        )
        return self._iterate_fragments(response)

    async def _iterate_fragments(self, response: Any) -> AsyncIterator[str]:
        try:
            async for chunk in response:
                text = _fragment_text(chunk)
                if text:
                    yield text
        except Exception as e:
            error = classify_error(e)
            self._logger.error(f"Completion stream failed: {error.message}")
            raise error from e

    async def complete(self, request: CompletionRequest) -> str:
        """Run a non-streamed completion.

        Args:
            request: The completion request

        Returns:
            The message content, stripped of surrounding whitespace
        """
        response = await acompletion(
            model=request.model,
            messages=self._create_messages(request),
            temperature=request.temperature,
            stream=False,
            drop_params=True,
            **self._connection_params(),
        )

        if not getattr(response, "choices", None):
            raise APIError("No response from model", "Retry later or try another model")

        message = getattr(response.choices[0], "message", None)
        return (getattr(message, "content", None) or "").strip()
