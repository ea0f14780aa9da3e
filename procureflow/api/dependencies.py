"""FastAPI dependencies resolving per-app services and caller identity.

Services are built in the app lifespan and stored on ``app.state``;
routes receive them through these dependencies instead of importing
module-level singletons.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from procureflow.services.agent_orchestrator import AgentOrchestrator
from procureflow.services.conversation_store import ConversationStore
from procureflow.services.token_usage_store import TokenUsageStore


def get_orchestrator(request: Request) -> AgentOrchestrator:
    """Return the orchestrator built by the lifespan."""
    return request.app.state.orchestrator


def get_store(request: Request) -> ConversationStore:
    """Return the conversation store built by the lifespan."""
    return request.app.state.store


def get_usage_store(request: Request) -> TokenUsageStore:
    """Return the token usage store built by the lifespan."""
    return request.app.state.usage_store


def get_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> Optional[str]:
    """Caller identity supplied by the upstream auth layer (X-User-Id).

    Returns:
        The user id, or None for anonymous callers.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


OrchestratorDep = Annotated[AgentOrchestrator, Depends(get_orchestrator)]
StoreDep = Annotated[ConversationStore, Depends(get_store)]
UsageStoreDep = Annotated[TokenUsageStore, Depends(get_usage_store)]
UserIdDep = Annotated[Optional[str], Depends(get_user_id)]
