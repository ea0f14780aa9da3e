"""Interactive conversational REPL for the ProcureFlow agent.

Runs the orchestrator in-process and renders replies with Rich: plain
text for the message body, tables for item lists, carts and purchase
requests, and a highlighted panel when an action awaits confirmation.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from procureflow.db.models import MessageRole
from procureflow.errors import ConversationNotFoundError, ValidationError
from procureflow.orchestrator.models.conversation import (
    CartAttachment,
    CartLine,
    CheckoutConfirmationAttachment,
    ItemsAttachment,
    Message,
    PurchaseRequestAttachment,
)
from procureflow.services.agent_orchestrator import AgentOrchestrator, ChatResult

console = Console()


def _cart_table(lines: list[CartLine], total: float, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Item")
    table.add_column("ID", style="dim")
    table.add_column("Qty", justify="right")
    table.add_column("Unit", justify="right")
    table.add_column("Subtotal", justify="right")
    for line in lines:
        table.add_row(
            line.item_name,
            line.item_id,
            str(line.quantity),
            f"${line.item_price:,.2f}",
            f"${line.subtotal:,.2f}",
        )
    table.caption = f"Total: ${total:,.2f}"
    return table


def render_attachment(message: Message) -> Optional[Table]:
    """Build a Rich table for a message attachment, if it has one."""
    attachment = message.attachment
    match attachment:
        case ItemsAttachment(items=items) if items:
            table = Table(title="Catalog Items")
            table.add_column("ID", style="dim")
            table.add_column("Name")
            table.add_column("Category")
            table.add_column("Price", justify="right")
            table.add_column("Availability")
            for item in items:
                table.add_row(
                    item.id,
                    item.name,
                    item.category,
                    f"${item.estimated_price:,.2f}",
                    item.availability.replace("_", " "),
                )
            return table
        case CartAttachment(cart=cart) if not cart.is_empty:
            return _cart_table(cart.items, cart.total_cost, "Cart")
        case CheckoutConfirmationAttachment(items=items, total=total):
            return _cart_table(items, total, "Checkout Preview")
        case PurchaseRequestAttachment(purchase_request=request):
            table = Table(title=f"Purchase Request {request.request_number}")
            table.add_column("Item")
            table.add_column("Category")
            table.add_column("Qty", justify="right")
            table.add_column("Subtotal", justify="right")
            for line in request.items:
                table.add_row(
                    line.item_name,
                    line.item_category,
                    str(line.quantity),
                    f"${line.subtotal:,.2f}",
                )
            table.caption = f"Total: ${request.total:,.2f} ({request.status})"
            return table
    return None


def render_message(message: Message) -> None:
    """Print one agent or system message."""
    if message.role == MessageRole.system:
        console.print(f"[dim]{message.content}[/dim]")
        return

    if message.pending_action is not None:
        console.print(Panel(message.content, title="Confirm", border_style="yellow"))
    else:
        console.print(f"[bold cyan]agent:[/bold cyan] {message.content}")

    table = render_attachment(message)
    if table is not None:
        console.print(table)


async def send_message(
    orchestrator: AgentOrchestrator,
    text: str,
    conversation_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Optional[ChatResult]:
    """Send one message, moving to a new conversation if the id is unknown.

    Returns:
        The turn result, or None when the message was rejected.
    """
    try:
        return await orchestrator.handle_message(
            text, conversation_id=conversation_id, user_id=user_id,
        )
    except ValidationError as e:
        console.print(f"[red]{e.message}[/red]")
        return None
    except ConversationNotFoundError as e:
        if conversation_id is None:
            raise
        console.print(f"[yellow]{e.message}. Starting a new conversation.[/yellow]")
        return await orchestrator.handle_message(text, user_id=user_id)


async def run_repl(
    orchestrator: AgentOrchestrator,
    user_id: Optional[str] = None,
    conversation_id: Optional[str] = None,
) -> None:
    """Run the interactive conversational REPL.

    Args:
        orchestrator: In-process orchestrator.
        user_id: Caller identity (cart and checkout need one).
        conversation_id: Optional conversation to resume.
    """
    console.print()
    console.print("[bold]ProcureFlow[/bold] - Procurement Assistant")
    console.print("Ask to search, add to cart, or check out. Ctrl+D to exit.")
    console.print()

    while True:
        try:
            user_input = console.input("[bold green]> [/bold green]")
        except EOFError:
            break
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted[/yellow]")
            break

        if not user_input.strip():
            continue

        result = await send_message(
            orchestrator, user_input, conversation_id=conversation_id, user_id=user_id,
        )
        if result is None:
            continue

        if result.conversation_id != conversation_id:
            conversation_id = result.conversation_id
            console.print(f"[dim]Conversation: {conversation_id}[/dim]")

        for message in result.messages:
            if message.role != MessageRole.user:
                render_message(message)
        console.print()

    console.print("\n[dim]Session ended.[/dim]")
