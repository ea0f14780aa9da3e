"""Token usage views for completion calls."""

from typing import Optional

from pydantic import BaseModel, Field


class TokenUsageEntry(BaseModel):
    """One recorded completion call."""

    id: str
    conversation_id: Optional[str] = None
    model: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    operation: str
    created_at: str


class TokenUsageSummary(BaseModel):
    """Aggregated token usage for a user, optionally for one conversation.

    Attributes:
        request_count: Completion calls recorded.
        prompt_tokens: Sum of input tokens.
        completion_tokens: Sum of output tokens.
        total_tokens: Sum of all tokens.
        recent: Most recent calls, newest first.
    """

    conversation_id: Optional[str] = None
    request_count: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    recent: list[TokenUsageEntry] = Field(default_factory=list)
