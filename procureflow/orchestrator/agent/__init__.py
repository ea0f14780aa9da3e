"""Agent package for ProcureFlow.

Turns user messages into replies, clarifying questions or tool proposals,
and gates mutating proposals behind explicit user confirmation.

Modules:
    system_prompt: System prompt builder (tools, output protocol, cart)
    tools: Tool definitions advertised to the completion provider
    intent_resolver: Completion call, retry/timeout policy, output parsing
    intent_detection: Deterministic confirmation reply heuristics
    confirmation_gate: Confirm-before-mutate state machine
"""

from procureflow.orchestrator.agent.confirmation_gate import (
    ConfirmationGate,
    GateDecision,
    GateState,
    find_pending_action,
)
from procureflow.orchestrator.agent.intent_detection import (
    ConfirmationReply,
    classify_confirmation,
    is_confirmation_response,
)
from procureflow.orchestrator.agent.intent_resolver import (
    IntentResolver,
    degraded_reply,
    parse_completion,
)
from procureflow.orchestrator.agent.system_prompt import build_system_prompt
from procureflow.orchestrator.agent.tools import get_tool_definitions

__all__ = [
    "ConfirmationGate",
    "GateDecision",
    "GateState",
    "find_pending_action",
    "ConfirmationReply",
    "classify_confirmation",
    "is_confirmation_response",
    "IntentResolver",
    "degraded_reply",
    "parse_completion",
    "build_system_prompt",
    "get_tool_definitions",
]
