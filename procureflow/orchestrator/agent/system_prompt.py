"""System prompt builder for the procurement assistant.

Merges the fixed assistant instructions, the tool catalogue, the JSON
output protocol and (when available) a summary of the user's cart. The
cart section is rebuilt per message so the model sees current totals.

Example:
    prompt = build_system_prompt(cart=await gateway.view_cart(user_id))
"""

import json

from procureflow.orchestrator.agent.tools import get_tool_definitions
from procureflow.orchestrator.models.conversation import CartSnapshot

MAX_PROMPT_CART_LINES = 10

_INSTRUCTIONS = """You are a helpful procurement assistant for ProcureFlow.

You help users find catalog items, register new catalog items, manage
their cart and submit purchase requests.

IMPORTANT GUIDELINES:
- Never execute a mutating action (register_item, add_to_cart, checkout)
  without first describing it and obtaining confirmation. Propose the tool
  call; the application asks the user to confirm before anything changes.
- When users ask to search or find items, use search_catalog.
- add_to_cart needs the catalog item ID and a quantity. If either is
  missing or ambiguous, ask the user instead of guessing.
- Never invent item IDs. Take them from search results in the conversation.
- Be conversational, brief and helpful."""

_PROTOCOL = """## Response Format

Respond with exactly one JSON object and nothing else:

{"type": "reply", "message": "<answer>"}
{"type": "clarify", "message": "<question asking for missing details>"}
{"type": "tool_call", "tool": "<tool name>", "arguments": {...}, "message": "<short note>"}

Use "clarify" when a request maps to a tool but required details are
missing or ambiguous. Use "tool_call" only when every required argument
is known."""


def _build_tools_section() -> str:
    """Render the tool catalogue with input schemas."""
    lines = ["## Tools", ""]
    for i, tool in enumerate(get_tool_definitions(), start=1):
        lines.append(f"{i}. **{tool['name']}**: {tool['description']}")
        lines.append(f"   arguments schema: {json.dumps(tool['input_schema'])}")
    return "\n".join(lines)


def _build_cart_section(cart: CartSnapshot | None) -> str:
    """Summarize the user's cart, or return an empty string if there is none.

    Args:
        cart: Current cart snapshot, if one could be fetched.

    Returns:
        Formatted cart section, or empty string for a missing/empty cart.
    """
    if cart is None or cart.is_empty:
        return ""

    lines = [
        "## Current Cart",
        "",
        f"The user has {cart.item_count} item(s) in their cart. "
        f"Total: ${cart.total_cost:,.2f}",
    ]
    for line in cart.items[:MAX_PROMPT_CART_LINES]:
        lines.append(
            f"- {line.item_name} × {line.quantity} "
            f"(ID: {line.item_id}, ${line.subtotal:,.2f})"
        )
    if len(cart.items) > MAX_PROMPT_CART_LINES:
        lines.append(f"- ... and {len(cart.items) - MAX_PROMPT_CART_LINES} more")
    return "\n".join(lines)


def build_system_prompt(cart: CartSnapshot | None = None) -> str:
    """Build the complete system prompt.

    Args:
        cart: Optional cart snapshot for the authenticated user.

    Returns:
        System prompt text.
    """
    sections = [_INSTRUCTIONS, _build_tools_section(), _PROTOCOL]
    cart_section = _build_cart_section(cart)
    if cart_section:
        sections.append(cart_section)
    return "\n\n".join(sections)
