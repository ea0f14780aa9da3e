"""Confirm-before-mutate gate for proposed tool calls.

Per-turn state machine::

    Idle --(read-only proposal)--> Executing
    Idle --(mutating proposal)---> ProposedAction
    ProposedAction --(affirm)----> Executing
    ProposedAction --(deny/other)> Cancelled  (then re-resolved as Idle)

The gate keeps no memory of its own. The pending proposal is read from
the persisted conversation: it exists only when the message right before
the new user message is an agent message carrying ``pending_action``.
Because the result of an execution is appended without a pending action,
a single confirmation can trigger at most one execution.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from procureflow.db.models import MessageRole
from procureflow.orchestrator.agent.intent_detection import (
    ConfirmationReply,
    classify_confirmation,
)
from procureflow.orchestrator.models.conversation import Conversation, Message
from procureflow.orchestrator.models.tool_calls import ProposedToolCall

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    """Confirmation gate states."""

    idle = "idle"
    proposed_action = "proposed_action"
    executing = "executing"
    cancelled = "cancelled"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of evaluating a user message or a proposal.

    Attributes:
        state: Resulting gate state for this turn.
        proposal: The proposal to execute (Executing), to confirm
            (ProposedAction) or that was discarded (Cancelled).
        reply: Classification of the user reply, when one was evaluated.
    """

    state: GateState
    proposal: Optional[ProposedToolCall] = None
    reply: Optional[ConfirmationReply] = None


def find_pending_action(
    conversation: Conversation, user_message: Message,
) -> Optional[ProposedToolCall]:
    """Return the proposal awaiting confirmation by ``user_message``.

    Args:
        conversation: Conversation log including ``user_message``.
        user_message: The newly appended user message.

    Returns:
        The pending ProposedToolCall, or None.
    """
    previous: Optional[Message] = None
    for message in conversation.messages:
        if message.sequence >= user_message.sequence:
            break
        previous = message

    if previous is None or previous.role != MessageRole.agent:
        return None
    pending = previous.pending_action
    if pending is None or pending.sequence >= user_message.sequence:
        return None
    return pending


class ConfirmationGate:
    """Decides whether proposals execute now or wait for confirmation."""

    def on_proposal(self, proposal: ProposedToolCall) -> GateDecision:
        """Gate a freshly resolved proposal (state Idle).

        Read-only tools go straight to Executing; mutating tools move to
        ProposedAction and must not be executed this turn.
        """
        if proposal.is_mutating:
            return GateDecision(state=GateState.proposed_action, proposal=proposal)
        return GateDecision(state=GateState.executing, proposal=proposal)

    def evaluate(
        self, conversation: Conversation, user_message: Message,
    ) -> GateDecision:
        """Evaluate a new user message against any pending proposal.

        Args:
            conversation: Conversation log including ``user_message``.
            user_message: The newly appended user message.

        Returns:
            Idle when nothing is pending; Executing with the stored
            proposal on an affirmative reply; Cancelled with the discarded
            proposal otherwise.
        """
        pending = find_pending_action(conversation, user_message)
        if pending is None:
            return GateDecision(state=GateState.idle)

        reply = classify_confirmation(user_message.content)
        if reply is ConfirmationReply.affirm:
            logger.info(
                "Confirmed %s in conversation %s",
                pending.call.tool, conversation.id,
            )
            return GateDecision(
                state=GateState.executing, proposal=pending, reply=reply,
            )

        logger.info(
            "Cancelled %s in conversation %s (%s reply)",
            pending.call.tool, conversation.id, reply.value,
        )
        return GateDecision(state=GateState.cancelled, proposal=pending, reply=reply)
