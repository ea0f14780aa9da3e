"""Root-level pytest fixtures for all tests.

Provides shared fixtures for:
- Conversation database (file-based SQLite under tmp_path) and token usage
- Scripted completion provider standing in for the model
- In-memory catalog, cart and checkout services
- A fully wired AgentOrchestrator
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from procureflow.config import Settings
from procureflow.db.connection import (
    create_engine_for,
    create_session_factory,
    init_db,
)
from procureflow.services.agent_orchestrator import (
    AgentOrchestrator,
    build_orchestrator,
)
from procureflow.services.completion_provider import TokenUsage
from procureflow.services.conversation_store import ConversationStore
from procureflow.services.memory_services import (
    InMemoryCartService,
    InMemoryCatalogService,
    InMemoryCheckoutService,
)
from procureflow.services.token_usage_store import TokenUsageStore
from procureflow.services.tool_gateway import ToolGateway
from tests.helpers import ScriptedProvider


# ============================================================================
# Pytest Markers
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )


# ============================================================================
# Completion provider
# ============================================================================


@pytest.fixture
def provider() -> ScriptedProvider:
    """Scripted provider with an empty queue, reporting fixed token usage."""
    return ScriptedProvider(usage=TokenUsage(input_tokens=100, output_tokens=20))


# ============================================================================
# Domain services
# ============================================================================


@pytest.fixture
def catalog() -> InMemoryCatalogService:
    return InMemoryCatalogService()


@pytest.fixture
def cart_service(catalog: InMemoryCatalogService) -> InMemoryCartService:
    return InMemoryCartService(catalog)


@pytest.fixture
def checkout_service(
    catalog: InMemoryCatalogService, cart_service: InMemoryCartService,
) -> InMemoryCheckoutService:
    return InMemoryCheckoutService(catalog, cart_service)


@pytest.fixture
def gateway(catalog, cart_service, checkout_service) -> ToolGateway:
    return ToolGateway(catalog=catalog, cart=cart_service, checkout=checkout_service)


# ============================================================================
# Conversation database
# ============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-based SQLite URL unique to the test."""
    return f"sqlite:///{tmp_path / 'conversations.db'}"


@pytest_asyncio.fixture
async def session_factory(
    database_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh database."""
    engine = create_engine_for(database_url)
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> ConversationStore:
    return ConversationStore(session_factory)


@pytest.fixture
def usage_store(session_factory) -> TokenUsageStore:
    return TokenUsageStore(session_factory)


@pytest.fixture
def settings(database_url: str) -> Settings:
    return Settings(database_url=database_url, tool_timeout_seconds=1.0)


@pytest.fixture
def orchestrator(
    store: ConversationStore,
    provider: ScriptedProvider,
    gateway: ToolGateway,
    settings: Settings,
    usage_store: TokenUsageStore,
) -> AgentOrchestrator:
    """Orchestrator wired to the scripted provider and in-memory services."""
    return build_orchestrator(
        store, provider, gateway, settings, usage_store=usage_store,
    )
