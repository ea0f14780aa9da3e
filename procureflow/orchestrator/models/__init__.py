"""Pydantic models for the agent orchestration engine.

This module exports the conversation/message/attachment models, the tool
call union, the intent resolution outcomes and token usage views.
"""

from procureflow.orchestrator.models.conversation import (
    Attachment,
    CartAttachment,
    CartLine,
    CartSnapshot,
    CatalogItem,
    CheckoutConfirmationAttachment,
    Conversation,
    ConversationSummary,
    ItemsAttachment,
    Message,
    MessageDraft,
    PurchaseRequestAttachment,
    PurchaseRequestLine,
    PurchaseRequestSnapshot,
)
from procureflow.orchestrator.models.intent import (
    ClarifyingQuestion,
    PlainReply,
    Resolution,
)
from procureflow.orchestrator.models.tool_calls import (
    MAX_QUANTITY,
    MAX_SEARCH_LIMIT,
    MUTATING_TOOLS,
    AddToCartCall,
    CheckoutCall,
    ProposedToolCall,
    RegisterItemCall,
    SearchCatalogCall,
    ToolCall,
    ToolName,
    ViewCartCall,
    normalize_tool_name,
    parse_tool_call,
)
from procureflow.orchestrator.models.usage import TokenUsageEntry, TokenUsageSummary

__all__ = [
    # Conversation
    "Attachment",
    "CartAttachment",
    "CartLine",
    "CartSnapshot",
    "CatalogItem",
    "CheckoutConfirmationAttachment",
    "Conversation",
    "ConversationSummary",
    "ItemsAttachment",
    "Message",
    "MessageDraft",
    "PurchaseRequestAttachment",
    "PurchaseRequestLine",
    "PurchaseRequestSnapshot",
    # Intent
    "ClarifyingQuestion",
    "PlainReply",
    "Resolution",
    # Tool calls
    "MAX_QUANTITY",
    "MAX_SEARCH_LIMIT",
    "MUTATING_TOOLS",
    "AddToCartCall",
    "CheckoutCall",
    "ProposedToolCall",
    "RegisterItemCall",
    "SearchCatalogCall",
    "ToolCall",
    "ToolName",
    "ViewCartCall",
    "normalize_tool_name",
    "parse_tool_call",
    # Usage
    "TokenUsageEntry",
    "TokenUsageSummary",
]
