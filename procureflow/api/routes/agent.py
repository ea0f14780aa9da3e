"""FastAPI routes for the procurement agent.

Endpoints:
    POST /agent/chat                          Send a message (creates a
                                                conversation when none given)
    POST /agent/conversations                 Start an empty conversation
    GET  /agent/conversations                 Recent conversations
    GET  /agent/conversations/{id}            Full conversation
    POST /agent/conversations/{id}/complete   Mark conversation completed
    GET  /agent/usage                         Caller's completion token usage
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query

from procureflow.api.dependencies import (
    OrchestratorDep,
    StoreDep,
    UsageStoreDep,
    UserIdDep,
)
from procureflow.api.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationListResponse,
    ConversationResponse,
)
from procureflow.db.models import ConversationStatus
from procureflow.orchestrator.models.usage import TokenUsageSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    orchestrator: OrchestratorDep,
    user_id: UserIdDep,
) -> ChatResponse:
    """Process one user message and return the messages it produced.

    Raises:
        EmptyMessageError: Handled as 400.
        ConversationNotFoundError: Handled as 404.
    """
    result = await orchestrator.handle_message(
        payload.message,
        conversation_id=payload.conversation_id,
        user_id=user_id,
    )
    return ChatResponse(
        conversation_id=result.conversation_id, messages=result.messages,
    )


@router.post("/conversations", response_model=ConversationResponse, status_code=201)
async def create_conversation(
    store: StoreDep, user_id: UserIdDep,
) -> ConversationResponse:
    """Start a new, empty conversation."""
    conversation = await store.create_conversation(user_id)
    return ConversationResponse(conversation=conversation)


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    store: StoreDep,
    user_id: UserIdDep,
    limit: int = Query(default=20, ge=1, le=100),
) -> ConversationListResponse:
    """List the caller's conversations, most recently updated first."""
    conversations = await store.list_recent(user_id, limit=limit)
    return ConversationListResponse(conversations=conversations)


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str, store: StoreDep, user_id: UserIdDep,
) -> ConversationResponse:
    """Return a conversation with its ordered message log."""
    conversation = await store.get_conversation(conversation_id, user_id)
    return ConversationResponse(conversation=conversation)


@router.post(
    "/conversations/{conversation_id}/complete",
    response_model=ConversationResponse,
)
async def complete_conversation(
    conversation_id: str, store: StoreDep, user_id: UserIdDep,
) -> ConversationResponse:
    """Mark a conversation completed. Idempotent."""
    await store.get_conversation(conversation_id, user_id)
    conversation = await store.set_status(conversation_id, ConversationStatus.completed)
    logger.info("Conversation %s completed by %s", conversation_id, user_id)
    return ConversationResponse(conversation=conversation)


@router.get("/usage", response_model=TokenUsageSummary)
async def get_usage(
    usage_store: UsageStoreDep,
    user_id: UserIdDep,
    conversation_id: Optional[str] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
) -> TokenUsageSummary:
    """Summarize the caller's completion token usage.

    Anonymous callers get an empty summary.
    """
    return await usage_store.summarize(
        user_id, conversation_id=conversation_id, limit=limit,
    )
