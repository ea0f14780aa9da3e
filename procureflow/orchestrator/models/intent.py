"""Intent resolution outcomes.

The IntentResolver classifies each completion into exactly one of:
a plain reply, a clarifying question, or a proposed tool call
(``ProposedToolCall`` from ``tool_calls``).
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from procureflow.orchestrator.models.tool_calls import ProposedToolCall


class PlainReply(BaseModel):
    """Free-text answer with no side effects.

    Attributes:
        text: Reply text shown to the user.
        degraded: True when the reply is a fixed apology produced because
            the completion provider failed or timed out.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["reply"] = "reply"
    text: str = Field(..., min_length=1)
    degraded: bool = False


class ClarifyingQuestion(BaseModel):
    """Question asking the user for missing or ambiguous details."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["clarify"] = "clarify"
    text: str = Field(..., min_length=1)


Resolution = Union[PlainReply, ClarifyingQuestion, ProposedToolCall]
