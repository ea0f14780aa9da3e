"""Per-conversation asyncio lock registry.

Turns (and appends) for the same conversation id are serialized by one
``asyncio.Lock`` per id; different ids never contend. Single-process
only, like the FastAPI event loop it runs on.

A lock lives only while some task holds or waits for it: ``hold`` counts
its users and drops the lock when the last one leaves, so the registry
does not grow with every conversation the process has ever served.

Example:
    locks = ConversationLockRegistry()
    async with locks.hold("conv-123"):
        ...
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class ConversationLockRegistry:
    """Hands out one lock per conversation id while it is in use.

    Attributes:
        _locks: Dict of conversation_id -> asyncio.Lock.
        _users: Dict of conversation_id -> tasks holding or awaiting it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def lock_for(self, conversation_id: str) -> asyncio.Lock:
        """Get the lock for a conversation, creating it on first use.

        Args:
            conversation_id: Conversation identifier.

        Returns:
            The asyncio.Lock guarding this conversation.
        """
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
            logger.debug("Created lock for conversation %s", conversation_id)
        return lock

    @asynccontextmanager
    async def hold(self, conversation_id: str) -> AsyncIterator[asyncio.Lock]:
        """Acquire the conversation lock; forget it once nobody needs it.

        Args:
            conversation_id: Conversation identifier.

        Yields:
            The held asyncio.Lock.
        """
        lock = self.lock_for(conversation_id)
        self._users[conversation_id] = self._users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield lock
        finally:
            remaining = self._users[conversation_id] - 1
            if remaining:
                self._users[conversation_id] = remaining
            else:
                del self._users[conversation_id]
                self.discard(conversation_id)

    def discard(self, conversation_id: str) -> None:
        """Forget an idle lock. Idempotent; held or awaited locks are kept."""
        lock = self._locks.get(conversation_id)
        if lock is None or lock.locked() or self._users.get(conversation_id):
            return
        del self._locks[conversation_id]
        logger.debug("Released lock for conversation %s", conversation_id)

    def __len__(self) -> int:
        return len(self._locks)
