"""Pydantic schemas for the agent chat API.

Message and conversation payloads reuse the orchestrator models so the
wire shape and the persisted shape cannot drift apart.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from procureflow.orchestrator.models.conversation import (
    Conversation,
    ConversationSummary,
    Message,
)


class ChatRequest(BaseModel):
    """Inbound chat message.

    Emptiness is checked by the orchestrator so an empty message maps to
    400 with the registry error shape rather than a schema 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="", max_length=4000)
    conversation_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("conversation_id", "conversationId"),
    )


class ChatResponse(BaseModel):
    """Messages appended during the turn."""

    conversation_id: str
    messages: list[Message]


class ConversationListResponse(BaseModel):
    """Recent conversations for the calling user."""

    conversations: list[ConversationSummary]


class ConversationResponse(BaseModel):
    """A full conversation with its message log."""

    conversation: Conversation


class ErrorResponse(BaseModel):
    """Error body shared by the 400/404 handlers."""

    error_code: str
    message: str
    remediation: str
