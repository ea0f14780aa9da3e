"""Conversation, message and attachment models.

These Pydantic models are the in-memory view of what ConversationStore
persists, and the payload shapes returned by the chat endpoint. Message
attachments form a discriminated union on ``kind``.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from procureflow.db.models import ConversationStatus, MessageRole
from procureflow.orchestrator.models.tool_calls import ProposedToolCall

Availability = Literal["in_stock", "out_of_stock", "limited"]


class CatalogItem(BaseModel):
    """A catalog item as seen by the agent.

    Attributes:
        id: Catalog item identifier.
        name: Display name.
        category: Catalog category.
        description: Free-text description.
        estimated_price: Unit price estimate in USD.
        availability: Stock indicator.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    description: str = ""
    estimated_price: float = Field(..., ge=0)
    availability: Availability = "in_stock"


class CartLine(BaseModel):
    """One line of a cart snapshot."""

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    item_name: str
    item_price: float
    quantity: int = Field(..., ge=1)
    subtotal: float


class CartSnapshot(BaseModel):
    """Point-in-time view of a user's cart.

    Attributes:
        items: Cart lines in insertion order.
        total_cost: Sum of line subtotals.
        item_count: Total quantity across all lines.
    """

    model_config = ConfigDict(from_attributes=True)

    items: list[CartLine] = Field(default_factory=list)
    total_cost: float = 0.0
    item_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.items


class PurchaseRequestLine(BaseModel):
    """Immutable line snapshot inside a purchase request."""

    model_config = ConfigDict(from_attributes=True)

    item_name: str
    item_category: str
    quantity: int
    unit_price: float
    subtotal: float


class PurchaseRequestSnapshot(BaseModel):
    """Purchase request created by checkout."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    request_number: str
    items: list[PurchaseRequestLine] = Field(default_factory=list)
    total: float
    status: str = "submitted"
    notes: str = ""


class ItemsAttachment(BaseModel):
    """Catalog search results."""

    kind: Literal["items"] = "items"
    items: list[CatalogItem]


class CartAttachment(BaseModel):
    """Cart after a view or an add."""

    kind: Literal["cart"] = "cart"
    cart: CartSnapshot


class CheckoutConfirmationAttachment(BaseModel):
    """Cart preview shown while a checkout awaits confirmation."""

    kind: Literal["checkout_confirmation"] = "checkout_confirmation"
    items: list[CartLine]
    total: float
    item_count: int


class PurchaseRequestAttachment(BaseModel):
    """Purchase request produced by a confirmed checkout."""

    kind: Literal["purchase_request"] = "purchase_request"
    purchase_request: PurchaseRequestSnapshot


Attachment = Annotated[
    Union[
        ItemsAttachment,
        CartAttachment,
        CheckoutConfirmationAttachment,
        PurchaseRequestAttachment,
    ],
    Field(discriminator="kind"),
]


class MessageDraft(BaseModel):
    """A message to append; the store assigns id, sequence and timestamp."""

    role: MessageRole
    content: str
    attachment: Optional[Attachment] = None
    pending_action: Optional[ProposedToolCall] = None


class Message(BaseModel):
    """A persisted, immutable conversation message.

    Attributes:
        id: Message UUID.
        sequence: 1-based position within the conversation.
        role: 'user', 'agent', or 'system'.
        content: Message text.
        created_at: ISO8601 creation timestamp.
        attachment: Optional structured payload.
        pending_action: Tool call this agent message asks the user to confirm.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    sequence: int
    role: MessageRole
    content: str
    created_at: str
    attachment: Optional[Attachment] = None
    pending_action: Optional[ProposedToolCall] = None


class Conversation(BaseModel):
    """A conversation with its full ordered message log."""

    id: str
    user_id: Optional[str] = None
    title: str
    status: ConversationStatus = ConversationStatus.in_progress
    last_message_preview: str = ""
    created_at: str
    updated_at: str
    messages: list[Message] = Field(default_factory=list)


class ConversationSummary(BaseModel):
    """Lightweight conversation row for history listings."""

    id: str
    title: str
    status: ConversationStatus
    last_message_preview: str
    created_at: str
    updated_at: str
    message_count: int = 0
