"""Completion provider contract and the Anthropic-backed implementation.

The orchestration engine treats the model as a black box: a prompt and a
system message go in, text comes out. Every SDK failure is translated
into the provider error taxonomy so callers never see SDK exceptions.

Example:
    provider = AnthropicCompletionProvider(model=settings.agent_model)
    completion = await provider.complete(prompt, system_message)
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import anthropic
from anthropic import AsyncAnthropic

from procureflow.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from procureflow.errors import ProviderTimeoutError, ProviderUnavailableError

logger = logging.getLogger(__name__)

PROVIDER_SERVICE_NAME = "assistant"


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported for one completion call."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class Completion:
    """Text returned by a completion provider.

    Attributes:
        content: Generated text.
        usage: Token counts, when the provider reports them.
        model: Model that produced the text, when known.
    """

    content: str
    usage: TokenUsage | None = None
    model: str | None = None


@runtime_checkable
class CompletionProvider(Protocol):
    """Text-completion dependency used by the IntentResolver.

    Implementations raise ProviderUnavailableError on failure and
    ProviderTimeoutError when their own transport times out.
    """

    async def complete(self, prompt: str, system_message: str) -> Completion:
        """Generate a completion for ``prompt`` under ``system_message``."""
        ...


class AnthropicCompletionProvider:
    """CompletionProvider backed by the Anthropic Messages API.

    SDK retries are disabled; the single retry the engine allows is made
    by the IntentResolver so it applies to every provider uniformly.

    Args:
        model: Model identifier.
        max_tokens: Output token cap.
        timeout_seconds: Transport timeout for one request.
        client: Optional pre-built AsyncAnthropic client (tests).
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: float | None = None,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._timeout_seconds = timeout_seconds
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Any:
        if self._client is None:
            kwargs: dict[str, Any] = {"max_retries": 0}
            if self._timeout_seconds is not None:
                kwargs["timeout"] = self._timeout_seconds
            self._client = AsyncAnthropic(**kwargs)
        return self._client

    async def complete(self, prompt: str, system_message: str) -> Completion:
        """Call the Messages API and return the concatenated text blocks.

        Raises:
            ProviderTimeoutError: The request timed out.
            ProviderUnavailableError: Any other SDK or connection failure,
                missing credentials, or a response without text.
        """
        try:
            client = self._get_client()
            response = await client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system_message,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as e:
            raise ProviderTimeoutError(
                PROVIDER_SERVICE_NAME, self._timeout_seconds or 0,
            ) from e
        except anthropic.AnthropicError as e:
            logger.warning("Anthropic request failed: %s", type(e).__name__)
            raise ProviderUnavailableError(PROVIDER_SERVICE_NAME, str(e)) from e
        except TypeError as e:
            # The SDK raises TypeError when no API key or auth token is configured
            logger.warning("Anthropic client is not configured: %s", e)
            raise ProviderUnavailableError(PROVIDER_SERVICE_NAME, str(e)) from e

        text = "".join(
            getattr(block, "text", "")
            for block in (response.content or [])
            if getattr(block, "type", "text") == "text"
        ).strip()
        if not text:
            raise ProviderUnavailableError(
                PROVIDER_SERVICE_NAME, "Completion returned no text",
            )
        return Completion(
            content=text,
            usage=_usage_from(getattr(response, "usage", None)),
            model=getattr(response, "model", None) or self._model,
        )


def _usage_from(usage: Any) -> TokenUsage | None:
    """Read input/output token counts from an SDK usage block."""
    if usage is None:
        return None
    return TokenUsage(
        input_tokens=int(getattr(usage, "input_tokens", 0) or 0),
        output_tokens=int(getattr(usage, "output_tokens", 0) or 0),
    )
