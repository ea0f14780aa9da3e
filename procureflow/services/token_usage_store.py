"""Token usage accounting for completion calls.

Every successful completion made while resolving a turn is recorded with
its prompt/completion token counts, keyed by conversation and user.
Recording is best-effort: a failed write is logged and never blocks or
alters the reply.

Example:
    usage_store = TokenUsageStore(session_factory)
    await usage_store.record(completion, conversation_id="c1", user_id="u1")
    summary = await usage_store.summarize("u1")
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from procureflow.db.connection import session_scope
from procureflow.db.models import TokenUsageRecord, generate_uuid, utc_now_iso
from procureflow.orchestrator.models.usage import TokenUsageEntry, TokenUsageSummary
from procureflow.services.completion_provider import Completion

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "intent_resolution"
DEFAULT_RECENT_LIMIT = 20
MAX_RECENT_LIMIT = 100


def _entry_from_record(record: TokenUsageRecord) -> TokenUsageEntry:
    return TokenUsageEntry(
        id=record.id,
        conversation_id=record.conversation_id,
        model=record.model,
        prompt_tokens=record.prompt_tokens,
        completion_tokens=record.completion_tokens,
        total_tokens=record.total_tokens,
        operation=record.operation,
        created_at=record.created_at,
    )


class TokenUsageStore:
    """Persists and aggregates completion token usage.

    Args:
        session_factory: Async session factory bound to the engine.
        default_model: Model name recorded when a completion omits it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_model: str = "unknown",
    ) -> None:
        self._session_factory = session_factory
        self._default_model = default_model

    async def record(
        self,
        completion: Completion,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        operation: str = DEFAULT_OPERATION,
    ) -> Optional[TokenUsageEntry]:
        """Record the usage of one completion. Never raises.

        Args:
            completion: Completion whose ``usage`` is recorded.
            conversation_id: Conversation the call was made for.
            user_id: Caller, or None for anonymous.
            operation: What the call was for.

        Returns:
            The stored entry, or None when the completion carried no usage
            or the write failed.
        """
        usage = completion.usage
        if usage is None:
            return None

        record = TokenUsageRecord(
            id=generate_uuid(),
            conversation_id=conversation_id,
            user_id=user_id,
            model=completion.model or self._default_model,
            prompt_tokens=usage.input_tokens,
            completion_tokens=usage.output_tokens,
            total_tokens=usage.total_tokens,
            operation=operation,
            created_at=utc_now_iso(),
        )
        try:
            async with session_scope(self._session_factory) as db:
                db.add(record)
        except Exception as exc:
            logger.warning(
                "Failed to save token usage for conversation %s: %s",
                conversation_id, exc,
            )
            return None

        logger.info(
            "Token usage tracked (model=%s, input=%d, output=%d, conversation=%s)",
            record.model, record.prompt_tokens, record.completion_tokens,
            conversation_id,
        )
        return _entry_from_record(record)

    async def summarize(
        self,
        user_id: Optional[str],
        conversation_id: Optional[str] = None,
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> TokenUsageSummary:
        """Aggregate a user's token usage.

        Anonymous callers get an empty summary.

        Args:
            user_id: User whose usage is summarized.
            conversation_id: Restrict to one conversation.
            limit: Recent entries to include, clamped to [1, MAX_RECENT_LIMIT].

        Returns:
            Totals plus the most recent entries, newest first.
        """
        if not user_id:
            return TokenUsageSummary(conversation_id=conversation_id)
        limit = max(1, min(limit, MAX_RECENT_LIMIT))

        conditions = [TokenUsageRecord.user_id == user_id]
        if conversation_id:
            conditions.append(TokenUsageRecord.conversation_id == conversation_id)

        totals_query = select(
            func.count(TokenUsageRecord.id),
            func.coalesce(func.sum(TokenUsageRecord.prompt_tokens), 0),
            func.coalesce(func.sum(TokenUsageRecord.completion_tokens), 0),
            func.coalesce(func.sum(TokenUsageRecord.total_tokens), 0),
        ).where(*conditions)
        recent_query = (
            select(TokenUsageRecord)
            .where(*conditions)
            .order_by(TokenUsageRecord.created_at.desc())
            .limit(limit)
        )

        async with self._session_factory() as db:
            count, prompt, completion, total = (await db.execute(totals_query)).one()
            recent = (await db.scalars(recent_query)).all()

        return TokenUsageSummary(
            conversation_id=conversation_id,
            request_count=count,
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=total,
            recent=[_entry_from_record(r) for r in recent],
        )
