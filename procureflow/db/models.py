"""SQLAlchemy ORM models for the ProcureFlow conversation database.

One row per conversation plus an append-only message table ordered by a
per-conversation sequence number. Pending confirmation state lives on
the agent message that proposed the action; there is no separate
pending-action table. Token usage of completion calls is kept in its own
append-only table. Uses SQLAlchemy 2.0 style with Mapped and
mapped_column.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


def generate_uuid() -> str:
    """Generate a UUID4 string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


class ConversationStatus(str, Enum):
    """Lifecycle status of a conversation.

    Lifecycle: in_progress -> completed (explicit external signal only)
    """

    in_progress = "in_progress"
    completed = "completed"


class MessageRole(str, Enum):
    """Sender role of a conversation message."""

    user = "user"
    agent = "agent"
    system = "system"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ConversationRecord(Base):
    """Persistent agent conversation.

    Attributes:
        id: UUID primary key.
        user_id: Owning user (None for anonymous conversations).
        title: Seeded from the first user message.
        status: 'in_progress' or 'completed'.
        last_message_preview: Short preview of the most recent message.
        created_at: ISO8601 creation timestamp.
        updated_at: ISO8601 last-update timestamp.
    """

    __tablename__ = "agent_conversations"
    __table_args__ = (
        Index("ix_agentconv_user_updated", "user_id", "updated_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, default="New conversation"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ConversationStatus.in_progress.value
    )
    last_message_preview: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    messages: Mapped[list["ConversationMessageRecord"]] = relationship(
        "ConversationMessageRecord",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ConversationMessageRecord.sequence",
    )

    def __repr__(self) -> str:
        return f"<ConversationRecord(id={self.id!r}, status={self.status!r})>"


class ConversationMessageRecord(Base):
    """Persistent conversation message. Never updated after insert.

    Attributes:
        id: UUID primary key.
        conversation_id: FK to ConversationRecord.
        sequence: Ordering within the conversation (strictly increasing).
        role: 'user', 'agent', or 'system'.
        content: Message text.
        attachment_json: Optional JSON attachment (items, cart, ...).
        pending_action_json: Optional JSON tool call awaiting confirmation.
        created_at: ISO8601 creation timestamp.
    """

    __tablename__ = "agent_conversation_messages"
    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "sequence", name="uq_agentmsg_conversation_seq"
        ),
        Index("ix_agentmsg_conversation_seq", "conversation_id", "sequence"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("agent_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    pending_action_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    conversation: Mapped["ConversationRecord"] = relationship(
        "ConversationRecord", back_populates="messages"
    )

    def __repr__(self) -> str:
        return (
            f"<ConversationMessageRecord(id={self.id!r}, role={self.role!r}, "
            f"seq={self.sequence})>"
        )


class TokenUsageRecord(Base):
    """Token usage of one completion call made while resolving a turn.

    Rows are written best-effort after each successful completion and are
    never updated. Conversation and user ids are plain columns rather than
    foreign keys so usage history outlives deleted conversations.

    Attributes:
        id: UUID primary key.
        conversation_id: Conversation the call was made for.
        user_id: Caller (None for anonymous conversations).
        model: Model that served the call.
        prompt_tokens: Input tokens billed.
        completion_tokens: Output tokens billed.
        total_tokens: prompt_tokens + completion_tokens.
        operation: What the call was for (e.g. 'intent_resolution').
        created_at: ISO8601 creation timestamp.
    """

    __tablename__ = "agent_token_usage"
    __table_args__ = (
        Index("ix_agentusage_user_created", "user_id", "created_at"),
        Index("ix_agentusage_conversation", "conversation_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    conversation_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    prompt_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    operation: Mapped[str] = mapped_column(
        String(50), nullable=False, default="intent_resolution"
    )
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    def __repr__(self) -> str:
        return (
            f"<TokenUsageRecord(id={self.id!r}, model={self.model!r}, "
            f"total={self.total_tokens})>"
        )
