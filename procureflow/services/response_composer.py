"""ResponseComposer: builds outward messages and appends them."""

from typing import Optional

from procureflow.db.models import MessageRole
from procureflow.orchestrator.models.conversation import (
    Attachment,
    Conversation,
    MessageDraft,
)
from procureflow.orchestrator.models.tool_calls import ProposedToolCall
from procureflow.services.conversation_store import ConversationStore


class ResponseComposer:
    """Appends agent and system messages through the ConversationStore."""

    def __init__(self, store: ConversationStore) -> None:
        self._store = store

    async def compose(
        self,
        conversation_id: str,
        text: str,
        attachment: Optional[Attachment] = None,
        pending_action: Optional[ProposedToolCall] = None,
    ) -> Conversation:
        """Append an agent reply.

        Args:
            conversation_id: Target conversation.
            text: Reply text.
            attachment: Optional structured payload.
            pending_action: Proposal this reply asks the user to confirm.

        Returns:
            The updated Conversation; the new message is last.
        """
        return await self._store.append_message(
            conversation_id,
            MessageDraft(
                role=MessageRole.agent,
                content=text,
                attachment=attachment,
                pending_action=pending_action,
            ),
        )

    async def note(self, conversation_id: str, text: str) -> Conversation:
        """Append a system message (e.g. a discarded proposal)."""
        return await self._store.append_message(
            conversation_id, MessageDraft(role=MessageRole.system, content=text),
        )
