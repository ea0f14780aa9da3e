"""Intent resolution via the completion provider.

Builds a bounded context from the conversation log, asks the provider for
a single JSON decision, and classifies the answer as a PlainReply, a
ClarifyingQuestion or a ProposedToolCall. Provider failures never escape:
they degrade to a fixed apology flagged ``degraded``.

Example:
    resolver = IntentResolver(provider, history_window=10)
    resolution = await resolver.resolve(history, "find pens", sequence=3)
"""

import asyncio
import json
import logging
import re
from typing import Any

from procureflow.config import (
    DEFAULT_COMPLETION_TIMEOUT_SECONDS,
    DEFAULT_HISTORY_WINDOW,
)
from procureflow.errors import (
    ProviderTimeoutError,
    ProviderUnavailableError,
    ValidationError,
    format_error,
)
from procureflow.orchestrator.agent.system_prompt import build_system_prompt
from procureflow.orchestrator.models.conversation import CartSnapshot, Message
from procureflow.orchestrator.models.intent import (
    ClarifyingQuestion,
    PlainReply,
    Resolution,
)
from procureflow.orchestrator.models.tool_calls import (
    ProposedToolCall,
    ToolName,
    normalize_tool_name,
    parse_tool_call,
)
from procureflow.services.completion_provider import (
    PROVIDER_SERVICE_NAME,
    Completion,
    CompletionProvider,
)
from procureflow.services.token_usage_store import TokenUsageStore

logger = logging.getLogger(__name__)

# Attempts per completion: the first call plus one retry on unavailability.
MAX_COMPLETION_ATTEMPTS = 2

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

_GENERIC_CLARIFICATION = "Could you tell me a bit more about what you need?"
_UNKNOWN_TOOL_CLARIFICATION = (
    "I can search the catalog, register new items, add items to your cart, "
    "show your cart, or submit your cart as a purchase request. "
    "Which would you like to do?"
)
_TOOL_CLARIFICATIONS: dict[ToolName, str] = {
    ToolName.add_to_cart: (
        "Which item would you like to add, and how many? Please give the item "
        "ID from the search results and a quantity between 1 and 999."
    ),
    ToolName.register_item: (
        "To register a new item I need its name, category, a description of "
        "at least 10 characters, and an estimated price greater than zero."
    ),
    ToolName.search_catalog: "What would you like me to search the catalog for?",
}


def degraded_reply() -> PlainReply:
    """Fixed apology used whenever the provider cannot answer."""
    return PlainReply(text=format_error("E-3001").render(), degraded=True)


def format_history(messages: list[Message]) -> str:
    """Render messages as ``role: content`` lines."""
    return "\n".join(f"{m.role.value}: {m.content}" for m in messages)


def build_prompt(history: list[Message], user_message: str) -> str:
    """Build the provider prompt from bounded history and the new message."""
    parts = []
    if history:
        parts.append("Conversation so far:\n" + format_history(history))
    parts.append(f"user: {user_message}")
    return "\n\n".join(parts)


def _extract_json(text: str) -> Any | None:
    """Decode a JSON value from raw or fenced completion text."""
    raw = text.strip()
    fenced = _FENCE_PATTERN.match(raw)
    if fenced:
        raw = fenced.group(1)
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass

    # Tolerate a JSON object embedded in surrounding prose
    start, end = raw.find("{"), raw.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        return json.loads(raw[start:end + 1])
    except json.JSONDecodeError:
        return None


def _clarification_for(tool: Any) -> str:
    name = normalize_tool_name(str(tool or ""))
    if name is None:
        return _UNKNOWN_TOOL_CLARIFICATION
    return _TOOL_CLARIFICATIONS.get(name, _GENERIC_CLARIFICATION)


def parse_completion(text: str, sequence: int) -> Resolution:
    """Classify provider output.

    Args:
        text: Raw completion text.
        sequence: Sequence number of the user message being answered.

    Returns:
        PlainReply for non-JSON text or a ``reply`` decision,
        ClarifyingQuestion for ``clarify`` or an incomplete tool call,
        ProposedToolCall for a recognized tool with valid arguments.
    """
    stripped = text.strip()
    if not stripped:
        return degraded_reply()

    payload = _extract_json(stripped)
    if not isinstance(payload, dict):
        return PlainReply(text=stripped)

    kind = str(payload.get("type") or "reply").strip().lower()
    message = str(payload.get("message") or "").strip()

    if kind in ("tool_call", "tool"):
        tool = payload.get("tool") or payload.get("name")
        arguments = payload.get("arguments")
        if arguments is None:
            arguments = payload.get("args", {})
        try:
            call = parse_tool_call(str(tool or ""), arguments)
        except ValidationError as e:
            logger.info("Incomplete tool call %r: %s", tool, e.message)
            return ClarifyingQuestion(text=_clarification_for(tool))
        return ProposedToolCall(call=call, sequence=sequence)

    if kind == "clarify":
        return ClarifyingQuestion(text=message or _GENERIC_CLARIFICATION)

    if not message:
        return ClarifyingQuestion(text=_GENERIC_CLARIFICATION)
    return PlainReply(text=message)


class IntentResolver:
    """Turns a user message plus bounded history into a Resolution.

    Attributes:
        history_window: Number of prior messages included in the prompt.
        timeout_seconds: Bound on each completion attempt.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        timeout_seconds: float = DEFAULT_COMPLETION_TIMEOUT_SECONDS,
        usage_store: TokenUsageStore | None = None,
    ) -> None:
        self._provider = provider
        self._usage_store = usage_store
        self.history_window = history_window
        self.timeout_seconds = timeout_seconds

    async def resolve(
        self,
        history: list[Message],
        user_message: str,
        sequence: int,
        cart: CartSnapshot | None = None,
        conversation_id: str | None = None,
        user_id: str | None = None,
    ) -> Resolution:
        """Resolve the intent of ``user_message``.

        Args:
            history: Prior conversation messages, oldest first, excluding
                the new user message. Only the last ``history_window``
                are sent.
            user_message: The new user message text.
            sequence: Sequence number of the new user message.
            cart: Optional cart snapshot injected into the system prompt.
            conversation_id: Conversation the usage is recorded against.
            user_id: Caller the usage is recorded against.

        Returns:
            A Resolution. Provider failures yield a degraded PlainReply.
        """
        bounded = history[-self.history_window:] if self.history_window > 0 else []
        prompt = build_prompt(bounded, user_message)
        system_message = build_system_prompt(cart=cart)

        try:
            completion = await self._complete(prompt, system_message)
        except ProviderUnavailableError as e:
            logger.warning(
                "Completion provider failed (%s): %s", type(e).__name__, e.message,
            )
            return degraded_reply()

        if self._usage_store is not None:
            await self._usage_store.record(
                completion, conversation_id=conversation_id, user_id=user_id,
            )
        return parse_completion(completion.content, sequence)

    async def _complete(self, prompt: str, system_message: str) -> Completion:
        """Call the provider with a timeout and at most one retry.

        Only ProviderUnavailableError is retried; timeouts are not.
        """
        for attempt in range(1, MAX_COMPLETION_ATTEMPTS + 1):
            try:
                return await asyncio.wait_for(
                    self._provider.complete(prompt, system_message),
                    timeout=self.timeout_seconds,
                )
            except TimeoutError as e:
                raise ProviderTimeoutError(
                    PROVIDER_SERVICE_NAME, self.timeout_seconds,
                ) from e
            except ProviderTimeoutError:
                raise
            except ProviderUnavailableError as e:
                if attempt >= MAX_COMPLETION_ATTEMPTS:
                    raise
                logger.warning(
                    "Completion attempt %d failed, retrying: %s", attempt, e.message,
                )
        raise ProviderUnavailableError(PROVIDER_SERVICE_NAME)
