"""Environment-driven configuration for the ProcureFlow agent.

All tunables are read from environment variables once, at process
start-up, into an immutable Settings object. The entry point (API
lifespan or CLI) owns the Settings instance and passes it down; nothing
below the entry point reads the environment directly.

Example:
    settings = get_settings()
    store = ConversationStore(create_session_factory(create_engine_for(settings.database_url)))
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from procureflow.utils.paths import get_default_db_path

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_HISTORY_WINDOW = 10
DEFAULT_COMPLETION_TIMEOUT_SECONDS = 30.0
DEFAULT_TOOL_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_TOKENS = 1024


def get_database_url() -> str:
    """Get database URL from environment or use default SQLite.

    Precedence:
    1. DATABASE_URL (canonical)
    2. PROCUREFLOW_DB_PATH (converted to sqlite URL)
    3. sqlite:///<platform data dir>/procureflow.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("PROCUREFLOW_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite"):
            return db_path
        return f"sqlite:///{db_path}"

    return f"sqlite:///{get_default_db_path()}"


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    """Read a positive integer env var, falling back on bad input."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %d", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d below minimum %d, using default", name, value, minimum)
        return default
    return value


def _env_float(name: str, default: float) -> float:
    """Read a positive float env var, falling back on bad input."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive, using default %s", name, default)
        return default
    return value


def _parse_allowed_origins(raw: str) -> tuple[str, ...]:
    """Parse comma-separated CORS allowlist."""
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL (sync form; async driver derived).
        agent_model: Completion model identifier.
        agent_max_tokens: Output token cap for each completion.
        history_window: Number of prior messages sent to the provider.
        completion_timeout_seconds: Bound on a single completion call.
        tool_timeout_seconds: Bound on a single domain-service call.
        sql_echo: Echo SQL statements (debugging).
        allowed_origins: CORS origins for the HTTP surface.
    """

    database_url: str = field(default_factory=get_database_url)
    agent_model: str = DEFAULT_MODEL
    agent_max_tokens: int = DEFAULT_MAX_TOKENS
    history_window: int = DEFAULT_HISTORY_WINDOW
    completion_timeout_seconds: float = DEFAULT_COMPLETION_TIMEOUT_SECONDS
    tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS
    sql_echo: bool = False
    allowed_origins: tuple[str, ...] = ()


def get_settings() -> Settings:
    """Build Settings from the current environment.

    Model resolution:
    1) AGENT_MODEL (preferred)
    2) ANTHROPIC_MODEL (compat)
    3) Claude Haiku 4.5 (cost-optimized default)

    Returns:
        A frozen Settings instance.
    """
    return Settings(
        database_url=get_database_url(),
        agent_model=(
            os.environ.get("AGENT_MODEL")
            or os.environ.get("ANTHROPIC_MODEL")
            or DEFAULT_MODEL
        ),
        agent_max_tokens=_env_int("AGENT_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        history_window=_env_int("AGENT_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
        completion_timeout_seconds=_env_float(
            "COMPLETION_TIMEOUT_SECONDS", DEFAULT_COMPLETION_TIMEOUT_SECONDS,
        ),
        tool_timeout_seconds=_env_float(
            "TOOL_TIMEOUT_SECONDS", DEFAULT_TOOL_TIMEOUT_SECONDS,
        ),
        sql_echo=os.environ.get("SQL_ECHO", "").lower() == "true",
        allowed_origins=_parse_allowed_origins(os.environ.get("ALLOWED_ORIGINS", "")),
    )
