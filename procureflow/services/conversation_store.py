"""Durable conversation persistence.

Thin async layer over the SQLAlchemy models. All conversation reads and
writes go through this store; the orchestrator never touches sessions
directly. Messages are append-only and numbered by a per-conversation
sequence. Appends to one conversation are serialized by a lock, and the
unique ``(conversation_id, sequence)`` constraint rejects any ordering
violation that slips past it.
"""

import logging
from typing import Optional

from pydantic import TypeAdapter
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from procureflow.db.connection import session_scope
from procureflow.db.models import (
    ConversationMessageRecord,
    ConversationRecord,
    ConversationStatus,
    generate_uuid,
    utc_now_iso,
)
from procureflow.errors import ConversationNotFoundError, ValidationError
from procureflow.orchestrator.models.conversation import (
    Attachment,
    Conversation,
    ConversationSummary,
    Message,
    MessageDraft,
)
from procureflow.orchestrator.models.tool_calls import ProposedToolCall
from procureflow.services.conversation_locks import ConversationLockRegistry

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New conversation"
TITLE_MAX_LENGTH = 60
PREVIEW_MAX_LENGTH = 100
MAX_LIST_LIMIT = 100

_ATTACHMENT_ADAPTER: TypeAdapter[Attachment] = TypeAdapter(Attachment)


def truncate_title(text: str) -> str:
    """Single-line title of at most TITLE_MAX_LENGTH characters."""
    title = " ".join(text.split())[:TITLE_MAX_LENGTH].strip()
    return title or DEFAULT_TITLE


def make_preview(text: str) -> str:
    """Single-line preview of at most PREVIEW_MAX_LENGTH characters."""
    return " ".join(text.split())[:PREVIEW_MAX_LENGTH]


def _message_from_record(record: ConversationMessageRecord) -> Message:
    attachment = None
    if record.attachment_json:
        attachment = _ATTACHMENT_ADAPTER.validate_json(record.attachment_json)
    pending = None
    if record.pending_action_json:
        pending = ProposedToolCall.model_validate_json(record.pending_action_json)
    return Message(
        id=record.id,
        sequence=record.sequence,
        role=record.role,
        content=record.content,
        created_at=record.created_at,
        attachment=attachment,
        pending_action=pending,
    )


def _conversation_from_record(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        status=record.status,
        last_message_preview=record.last_message_preview,
        created_at=record.created_at,
        updated_at=record.updated_at,
        messages=[_message_from_record(m) for m in record.messages],
    )


class ConversationStore:
    """CRUD operations for conversations and their message logs.

    Args:
        session_factory: Async session factory bound to the engine.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._locks = ConversationLockRegistry()

    async def create_conversation(self, user_id: Optional[str] = None) -> Conversation:
        """Create an empty, in-progress conversation.

        Args:
            user_id: Owning user, or None for an anonymous conversation.

        Returns:
            The created Conversation.
        """
        now = utc_now_iso()
        record = ConversationRecord(
            id=generate_uuid(),
            user_id=user_id,
            title=DEFAULT_TITLE,
            status=ConversationStatus.in_progress.value,
            last_message_preview="",
            created_at=now,
            updated_at=now,
        )
        async with session_scope(self._session_factory) as db:
            db.add(record)
        logger.info("Created conversation %s (user=%s)", record.id, user_id)
        return Conversation(
            id=record.id,
            user_id=user_id,
            title=record.title,
            status=ConversationStatus.in_progress,
            last_message_preview="",
            created_at=now,
            updated_at=now,
            messages=[],
        )

    async def get_conversation(
        self, conversation_id: str, user_id: Optional[str] = None,
    ) -> Conversation:
        """Load a conversation with its full message log.

        Args:
            conversation_id: Conversation identifier.
            user_id: When given, only this user's conversation is returned.

        Returns:
            The Conversation.

        Raises:
            ConversationNotFoundError: Unknown id, or owned by someone else.
        """
        async with self._session_factory() as db:
            record = await self._load(db, conversation_id)
            if record is None or (user_id is not None and record.user_id != user_id):
                raise ConversationNotFoundError(conversation_id)
            return _conversation_from_record(record)

    async def append_message(
        self, conversation_id: str, draft: MessageDraft,
    ) -> Conversation:
        """Atomically append a message and refresh preview and updated_at.

        Args:
            conversation_id: Conversation identifier.
            draft: Message to append; sequence and timestamp are assigned here.

        Returns:
            The updated Conversation; the appended message is last.

        Raises:
            ConversationNotFoundError: Unknown conversation id.
        """
        async with self._locks.hold(conversation_id):
            async with session_scope(self._session_factory) as db:
                record = await db.get(ConversationRecord, conversation_id)
                if record is None:
                    raise ConversationNotFoundError(conversation_id)

                max_seq = await db.scalar(
                    select(func.max(ConversationMessageRecord.sequence)).where(
                        ConversationMessageRecord.conversation_id == conversation_id,
                    )
                )
                now = utc_now_iso()
                db.add(ConversationMessageRecord(
                    id=generate_uuid(),
                    conversation_id=conversation_id,
                    sequence=(max_seq or 0) + 1,
                    role=draft.role.value,
                    content=draft.content,
                    attachment_json=(
                        draft.attachment.model_dump_json() if draft.attachment else None
                    ),
                    pending_action_json=(
                        draft.pending_action.model_dump_json()
                        if draft.pending_action
                        else None
                    ),
                    created_at=now,
                ))
                record.last_message_preview = make_preview(draft.content)
                record.updated_at = now

            return await self.get_conversation(conversation_id)

    async def list_recent(
        self, user_id: Optional[str], limit: int = 20,
    ) -> list[ConversationSummary]:
        """List a user's conversations, most recently updated first.

        Anonymous callers have no history to list.

        Args:
            user_id: Owning user.
            limit: Maximum rows, clamped to [1, MAX_LIST_LIMIT].

        Returns:
            Conversation summaries with message counts.
        """
        if not user_id:
            return []
        limit = max(1, min(limit, MAX_LIST_LIMIT))

        query = (
            select(
                ConversationRecord.id,
                ConversationRecord.title,
                ConversationRecord.status,
                ConversationRecord.last_message_preview,
                ConversationRecord.created_at,
                ConversationRecord.updated_at,
                func.count(ConversationMessageRecord.id).label("message_count"),
            )
            .outerjoin(ConversationMessageRecord)
            .where(ConversationRecord.user_id == user_id)
            .group_by(ConversationRecord.id)
            .order_by(
                ConversationRecord.updated_at.desc(),
                ConversationRecord.created_at.desc(),
            )
            .limit(limit)
        )
        async with self._session_factory() as db:
            rows = (await db.execute(query)).all()

        return [
            ConversationSummary(
                id=row.id,
                title=row.title,
                status=row.status,
                last_message_preview=row.last_message_preview,
                created_at=row.created_at,
                updated_at=row.updated_at,
                message_count=row.message_count,
            )
            for row in rows
        ]

    async def touch(self, conversation_id: str, preview: str) -> None:
        """Update preview and updated_at without appending a message.

        Raises:
            ConversationNotFoundError: Unknown conversation id.
        """
        async with session_scope(self._session_factory) as db:
            record = await db.get(ConversationRecord, conversation_id)
            if record is None:
                raise ConversationNotFoundError(conversation_id)
            record.last_message_preview = make_preview(preview)
            record.updated_at = utc_now_iso()

    async def set_status(
        self, conversation_id: str, status: ConversationStatus | str,
    ) -> Conversation:
        """Set the lifecycle status (the external completion signal).

        Raises:
            ValidationError: Unknown status value.
            ConversationNotFoundError: Unknown conversation id.
        """
        try:
            status = ConversationStatus(status)
        except ValueError as e:
            raise ValidationError(f"Invalid conversation status '{status}'") from e

        async with session_scope(self._session_factory) as db:
            record = await db.get(ConversationRecord, conversation_id)
            if record is None:
                raise ConversationNotFoundError(conversation_id)
            record.status = status.value
            record.updated_at = utc_now_iso()
        logger.info("Conversation %s status -> %s", conversation_id, status.value)
        return await self.get_conversation(conversation_id)

    async def set_title(self, conversation_id: str, title: str) -> None:
        """Set the conversation title, truncated to TITLE_MAX_LENGTH.

        Raises:
            ConversationNotFoundError: Unknown conversation id.
        """
        async with session_scope(self._session_factory) as db:
            record = await db.get(ConversationRecord, conversation_id)
            if record is None:
                raise ConversationNotFoundError(conversation_id)
            record.title = truncate_title(title)

    async def _load(
        self, db: AsyncSession, conversation_id: str,
    ) -> Optional[ConversationRecord]:
        result = await db.execute(
            select(ConversationRecord)
            .options(selectinload(ConversationRecord.messages))
            .where(ConversationRecord.id == conversation_id)
        )
        return result.scalar_one_or_none()
