"""Tests for TokenUsageStore."""

import pytest

from procureflow.services.completion_provider import Completion, TokenUsage
from procureflow.services.token_usage_store import TokenUsageStore


def _completion(input_tokens: int, output_tokens: int, model: str | None = "m1") -> Completion:
    return Completion(
        content="ok",
        usage=TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens),
        model=model,
    )


class TestRecord:
    @pytest.mark.asyncio
    async def test_record_returns_entry(self, usage_store):
        entry = await usage_store.record(
            _completion(50, 10), conversation_id="c1", user_id="u1",
        )

        assert entry is not None
        assert entry.conversation_id == "c1"
        assert entry.model == "m1"
        assert entry.prompt_tokens == 50
        assert entry.completion_tokens == 10
        assert entry.total_tokens == 60

    @pytest.mark.asyncio
    async def test_completion_without_usage_is_skipped(self, usage_store):
        entry = await usage_store.record(Completion(content="ok"), user_id="u1")

        assert entry is None
        assert (await usage_store.summarize("u1")).request_count == 0

    @pytest.mark.asyncio
    async def test_missing_model_uses_default(self, session_factory):
        usage_store = TokenUsageStore(session_factory, default_model="claude-haiku")

        entry = await usage_store.record(_completion(1, 1, model=None), user_id="u1")

        assert entry.model == "claude-haiku"

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self):
        def broken_factory():
            raise RuntimeError("disk full")

        usage_store = TokenUsageStore(broken_factory)

        assert await usage_store.record(_completion(5, 5), user_id="u1") is None


class TestSummarize:
    @pytest.mark.asyncio
    async def test_totals_per_user(self, usage_store):
        await usage_store.record(_completion(100, 20), conversation_id="c1", user_id="u1")
        await usage_store.record(_completion(40, 10), conversation_id="c2", user_id="u1")
        await usage_store.record(_completion(999, 999), conversation_id="c3", user_id="u2")

        summary = await usage_store.summarize("u1")

        assert summary.request_count == 2
        assert summary.prompt_tokens == 140
        assert summary.completion_tokens == 30
        assert summary.total_tokens == 170
        assert {e.conversation_id for e in summary.recent} == {"c1", "c2"}

    @pytest.mark.asyncio
    async def test_filter_by_conversation(self, usage_store):
        await usage_store.record(_completion(100, 20), conversation_id="c1", user_id="u1")
        await usage_store.record(_completion(40, 10), conversation_id="c2", user_id="u1")

        summary = await usage_store.summarize("u1", conversation_id="c2")

        assert summary.conversation_id == "c2"
        assert summary.request_count == 1
        assert summary.total_tokens == 50

    @pytest.mark.asyncio
    async def test_recent_is_limited(self, usage_store):
        for _ in range(3):
            await usage_store.record(_completion(1, 1), conversation_id="c1", user_id="u1")

        summary = await usage_store.summarize("u1", limit=2)

        assert summary.request_count == 3
        assert len(summary.recent) == 2

    @pytest.mark.asyncio
    async def test_anonymous_summary_is_empty(self, usage_store):
        await usage_store.record(_completion(10, 10), conversation_id="c1", user_id=None)

        summary = await usage_store.summarize(None)

        assert summary.request_count == 0
        assert summary.total_tokens == 0
        assert summary.recent == []

    @pytest.mark.asyncio
    async def test_empty_summary(self, usage_store):
        summary = await usage_store.summarize("nobody")

        assert summary.request_count == 0
        assert summary.prompt_tokens == 0
        assert summary.recent == []
