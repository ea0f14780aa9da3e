"""Service layer for ProcureFlow.

Provides conversation persistence, the tool gateway and executor over the
domain collaborators, the completion provider, and the orchestrator that
sequences a chat turn.
"""

from procureflow.services.conversation_store import ConversationStore
from procureflow.services.domain_services import (
    CartService,
    CatalogService,
    CheckoutService,
)

__all__ = [
    "ConversationStore",
    "CatalogService",
    "CartService",
    "CheckoutService",
]
