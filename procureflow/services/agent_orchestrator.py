"""AgentOrchestrator: sequences one chat turn.

Per inbound message:

1. Validate (non-empty after trim) and load or create the conversation.
2. Serialize on the conversation id and append the user message.
3. Ask the ConfirmationGate whether the message answers a pending proposal:
   execute it, or record the cancellation and continue as a fresh turn.
4. Resolve intent, then reply, ask, execute a read-only call, or propose a
   mutating call for confirmation.

Client errors (empty message, unknown conversation) are raised before the
turn starts. Once it has started nothing escapes: unexpected failures are
logged and answered with a generic technical-issue reply.

Example:
    orchestrator = build_orchestrator(store, provider, gateway, settings)
    result = await orchestrator.handle_message("search for pens", user_id="u1")
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, assert_never

from procureflow.config import Settings
from procureflow.db.models import MessageRole, generate_uuid, utc_now_iso
from procureflow.errors import DomainError, EmptyMessageError, format_error
from procureflow.orchestrator.agent.confirmation_gate import (
    ConfirmationGate,
    GateState,
)
from procureflow.orchestrator.agent.intent_resolver import IntentResolver
from procureflow.orchestrator.models.conversation import (
    CartSnapshot,
    Conversation,
    Message,
    MessageDraft,
)
from procureflow.orchestrator.models.intent import ClarifyingQuestion, PlainReply
from procureflow.orchestrator.models.tool_calls import ProposedToolCall
from procureflow.services.completion_provider import CompletionProvider
from procureflow.services.conversation_locks import ConversationLockRegistry
from procureflow.services.conversation_store import ConversationStore
from procureflow.services.response_composer import ResponseComposer
from procureflow.services.token_usage_store import TokenUsageStore
from procureflow.services.tool_executor import ToolExecutor
from procureflow.services.tool_gateway import ToolGateway

logger = logging.getLogger(__name__)

TECHNICAL_ISSUE_CODE = "E-4001"


@dataclass(frozen=True)
class ChatResult:
    """Result of one chat turn.

    Attributes:
        conversation_id: Conversation the turn belongs to.
        messages: Messages appended during this turn, in order.
    """

    conversation_id: str
    messages: list[Message] = field(default_factory=list)


class AgentOrchestrator:
    """Façade over the store, resolver, gate, executor and composer.

    Args:
        store: Conversation persistence.
        resolver: Intent resolver.
        executor: Tool executor.
        gate: Confirmation gate (stateless; a default one is created).
        composer: Response composer (defaults to one over ``store``).
    """

    def __init__(
        self,
        store: ConversationStore,
        resolver: IntentResolver,
        executor: ToolExecutor,
        gate: Optional[ConfirmationGate] = None,
        composer: Optional[ResponseComposer] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._executor = executor
        self._gate = gate or ConfirmationGate()
        self._composer = composer or ResponseComposer(store)
        self._locks = ConversationLockRegistry()

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def handle_message(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ChatResult:
        """Process one user message.

        Args:
            message: Raw user text.
            conversation_id: Existing conversation, or None to start one.
            user_id: Authenticated caller, or None for anonymous.

        Returns:
            ChatResult with the messages appended this turn.

        Raises:
            EmptyMessageError: Message is empty after trimming.
            ConversationNotFoundError: Unknown (or foreign) conversation id.
        """
        text = (message or "").strip()
        if not text:
            raise EmptyMessageError()

        if conversation_id:
            conversation = await self._store.get_conversation(conversation_id, user_id)
        else:
            conversation = await self._store.create_conversation(user_id)

        async with self._locks.hold(conversation.id):
            return await self._run_turn(conversation.id, text, user_id)

    async def _run_turn(
        self, conversation_id: str, text: str, user_id: Optional[str],
    ) -> ChatResult:
        appended: list[Message] = []
        try:
            conversation = await self._store.append_message(
                conversation_id, MessageDraft(role=MessageRole.user, content=text),
            )
            user_message = conversation.messages[-1]
            appended.append(user_message)

            if not any(
                m.role == MessageRole.user for m in conversation.messages[:-1]
            ):
                await self._store.set_title(conversation_id, text)

            decision = self._gate.evaluate(conversation, user_message)
            match decision.state:
                case GateState.executing if decision.proposal is not None:
                    call = decision.proposal.call.bind_user(user_id)
                    result = await self._executor.execute(call, conversation_id)
                    conversation = await self._composer.compose(
                        conversation_id, result.text, attachment=result.attachment,
                    )
                    appended.append(conversation.messages[-1])
                    return ChatResult(conversation_id, appended)
                case GateState.cancelled if decision.proposal is not None:
                    conversation = await self._composer.note(
                        conversation_id,
                        "Pending action discarded without execution: "
                        f"{decision.proposal.call.describe()}",
                    )
                    appended.append(conversation.messages[-1])

            appended.extend(
                await self._resolve_and_respond(conversation, user_message, user_id)
            )
        except Exception:
            logger.exception(
                "Unexpected failure in conversation %s (user=%s)",
                conversation_id, user_id,
            )
            appended.append(await self._technical_issue_reply(conversation_id))

        return ChatResult(conversation_id, appended)

    async def _resolve_and_respond(
        self,
        conversation: Conversation,
        user_message: Message,
        user_id: Optional[str],
    ) -> list[Message]:
        history = [m for m in conversation.messages if m.sequence < user_message.sequence]
        cart = await self._cart_context(user_id)
        resolution = await self._resolver.resolve(
            history,
            user_message.content,
            user_message.sequence,
            cart=cart,
            conversation_id=conversation.id,
            user_id=user_id,
        )

        match resolution:
            case PlainReply(text=reply_text) | ClarifyingQuestion(text=reply_text):
                updated = await self._composer.compose(conversation.id, reply_text)

            case ProposedToolCall():
                proposal = ProposedToolCall(
                    call=resolution.call.bind_user(user_id),
                    sequence=resolution.sequence,
                )
                decision = self._gate.on_proposal(proposal)
                if decision.state is GateState.executing:
                    result = await self._executor.execute(proposal.call, conversation.id)
                    updated = await self._composer.compose(
                        conversation.id, result.text, attachment=result.attachment,
                    )
                else:
                    preview = await self._executor.preview(proposal.call)
                    updated = await self._composer.compose(
                        conversation.id,
                        preview.text,
                        attachment=preview.attachment,
                        pending_action=proposal if preview.succeeded else None,
                    )

            case _:
                assert_never(resolution)

        return [updated.messages[-1]]

    async def _cart_context(self, user_id: Optional[str]) -> Optional[CartSnapshot]:
        """Fetch the caller's cart for the prompt. Failure is non-blocking."""
        if not user_id:
            return None
        try:
            return await self._executor.current_cart(user_id)
        except DomainError as e:
            logger.info("Cart context unavailable for %s: %s", user_id, e.message)
            return None

    async def _technical_issue_reply(self, conversation_id: str) -> Message:
        text = format_error(TECHNICAL_ISSUE_CODE).render()
        try:
            conversation = await self._composer.compose(conversation_id, text)
            return conversation.messages[-1]
        except Exception:
            logger.exception(
                "Could not persist failure reply in conversation %s", conversation_id,
            )
            return Message(
                id=generate_uuid(),
                sequence=0,
                role=MessageRole.agent,
                content=text,
                created_at=utc_now_iso(),
            )


def build_orchestrator(
    store: ConversationStore,
    provider: CompletionProvider,
    gateway: ToolGateway,
    settings: Settings,
    usage_store: Optional[TokenUsageStore] = None,
) -> AgentOrchestrator:
    """Wire an AgentOrchestrator from its collaborators and settings.

    Token usage is recorded only when ``usage_store`` is given.
    """
    resolver = IntentResolver(
        provider,
        history_window=settings.history_window,
        timeout_seconds=settings.completion_timeout_seconds,
        usage_store=usage_store,
    )
    executor = ToolExecutor(gateway, timeout_seconds=settings.tool_timeout_seconds)
    return AgentOrchestrator(store=store, resolver=resolver, executor=executor)
