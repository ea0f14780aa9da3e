"""Database module for ProcureFlow conversation persistence."""

from procureflow.db.connection import (
    create_engine_for,
    create_session_factory,
    ensure_sqlite_parent_dir,
    init_db,
    session_scope,
    to_async_url,
)
from procureflow.db.models import (
    Base,
    ConversationMessageRecord,
    ConversationRecord,
    ConversationStatus,
    MessageRole,
    TokenUsageRecord,
)

__all__ = [
    # Models
    "Base",
    "ConversationRecord",
    "ConversationMessageRecord",
    "TokenUsageRecord",
    # Enums
    "ConversationStatus",
    "MessageRole",
    # Connection
    "create_engine_for",
    "create_session_factory",
    "ensure_sqlite_parent_dir",
    "init_db",
    "session_scope",
    "to_async_url",
]
