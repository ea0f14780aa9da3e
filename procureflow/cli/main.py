"""ProcureFlow CLI.

Usage:
    procureflow serve               Run the agent API with uvicorn
    procureflow chat                Start the conversational REPL in-process
    procureflow conversations       List recent conversations for a user
    procureflow usage               Show completion token usage for a user
    procureflow version             Show version
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from procureflow import __version__
from procureflow.config import get_settings
from procureflow.db.connection import (
    create_engine_for,
    create_session_factory,
    ensure_sqlite_parent_dir,
    init_db,
)
from procureflow.services.agent_orchestrator import build_orchestrator
from procureflow.services.completion_provider import AnthropicCompletionProvider
from procureflow.services.conversation_store import ConversationStore
from procureflow.services.memory_services import build_gateway
from procureflow.services.token_usage_store import TokenUsageStore

app = typer.Typer(
    name="procureflow",
    help="Conversational procurement assistant",
    no_args_is_help=True,
)

console = Console()


@app.command()
def version():
    """Show ProcureFlow version."""
    console.print(f"[bold]ProcureFlow[/bold] v{__version__}")
    console.print(f"  Model: {get_settings().agent_model}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    log_level: str = typer.Option("info", "--log-level", help="Uvicorn log level"),
):
    """Run the agent API (FastAPI + uvicorn)."""
    import uvicorn

    console.print(f"[bold]Starting ProcureFlow API on {host}:{port}[/bold]")
    uvicorn.run("procureflow.api.main:app", host=host, port=port, log_level=log_level)


@app.command()
def chat(
    user_id: Optional[str] = typer.Option(
        "local-user", "--user-id", "-u", help="Caller identity for cart and checkout",
    ),
    conversation_id: Optional[str] = typer.Option(
        None, "--conversation", "-c", help="Resume an existing conversation",
    ),
):
    """Chat with the agent in-process using the reference domain services."""
    from procureflow.cli.repl import run_repl

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s")
    settings = get_settings()

    async def _run():
        ensure_sqlite_parent_dir(settings.database_url)
        engine = create_engine_for(settings.database_url, echo=settings.sql_echo)
        try:
            await init_db(engine)
            session_factory = create_session_factory(engine)
            store = ConversationStore(session_factory)
            usage_store = TokenUsageStore(session_factory, default_model=settings.agent_model)
            gateway = build_gateway()
            provider = AnthropicCompletionProvider(
                model=settings.agent_model,
                max_tokens=settings.agent_max_tokens,
                timeout_seconds=settings.completion_timeout_seconds,
            )
            orchestrator = build_orchestrator(
                store, provider, gateway, settings, usage_store=usage_store,
            )
            await run_repl(orchestrator, user_id=user_id, conversation_id=conversation_id)
        finally:
            await engine.dispose()

    asyncio.run(_run())


@app.command()
def conversations(
    user_id: str = typer.Option("local-user", "--user-id", "-u", help="Owning user"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows"),
):
    """List recent conversations for a user."""
    settings = get_settings()

    async def _run():
        ensure_sqlite_parent_dir(settings.database_url)
        engine = create_engine_for(settings.database_url, echo=settings.sql_echo)
        try:
            await init_db(engine)
            store = ConversationStore(create_session_factory(engine))
            return await store.list_recent(user_id, limit=limit)
        finally:
            await engine.dispose()

    summaries = asyncio.run(_run())
    if not summaries:
        console.print("[yellow]No conversations found.[/yellow]")
        return

    table = Table(title="Conversations")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Messages", justify="right")
    table.add_column("Updated")
    for s in summaries:
        table.add_row(s.id, s.title, s.status.value, str(s.message_count), s.updated_at)
    console.print(table)


@app.command()
def usage(
    user_id: str = typer.Option("local-user", "--user-id", "-u", help="User to report on"),
    conversation_id: Optional[str] = typer.Option(
        None, "--conversation", "-c", help="Restrict to one conversation",
    ),
):
    """Show completion token usage for a user."""
    settings = get_settings()

    async def _run():
        ensure_sqlite_parent_dir(settings.database_url)
        engine = create_engine_for(settings.database_url, echo=settings.sql_echo)
        try:
            await init_db(engine)
            usage_store = TokenUsageStore(create_session_factory(engine))
            return await usage_store.summarize(user_id, conversation_id=conversation_id)
        finally:
            await engine.dispose()

    summary = asyncio.run(_run())
    if not summary.request_count:
        console.print("[yellow]No token usage recorded.[/yellow]")
        return

    table = Table(title="Token Usage")
    table.add_column("Requests", justify="right")
    table.add_column("Prompt", justify="right")
    table.add_column("Completion", justify="right")
    table.add_column("Total", justify="right")
    table.add_row(
        str(summary.request_count),
        str(summary.prompt_tokens),
        str(summary.completion_tokens),
        str(summary.total_tokens),
    )
    console.print(table)


if __name__ == "__main__":
    app()
