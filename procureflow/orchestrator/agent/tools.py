"""Tool definitions advertised to the completion provider.

Each definition carries a name, a description and a JSON-schema
``input_schema``. The schemas mirror the validation in
``procureflow.orchestrator.models.tool_calls``; identity fields are
omitted because the orchestrator binds them from the caller.
"""

from typing import Any

from procureflow.orchestrator.models.tool_calls import (
    MAX_QUANTITY,
    MAX_SEARCH_LIMIT,
    ToolName,
)

SEARCH_CATALOG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "keyword": {
            "type": "string",
            "description": "Search keyword, e.g. 'pens' or 'laptop'.",
        },
        "limit": {
            "type": "integer",
            "minimum": 1,
            "maximum": MAX_SEARCH_LIMIT,
            "description": "Maximum number of results (default 10).",
        },
    },
    "required": [],
}

REGISTER_ITEM_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 2, "maxLength": 200},
        "category": {"type": "string", "minLength": 2, "maxLength": 100},
        "description": {"type": "string", "minLength": 10, "maxLength": 2000},
        "estimated_price": {
            "type": "number",
            "exclusiveMinimum": 0,
            "description": "Estimated unit price in USD.",
        },
    },
    "required": ["name", "category", "description", "estimated_price"],
}

ADD_TO_CART_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "item_id": {
            "type": "string",
            "description": "Catalog item ID taken from search results.",
        },
        "quantity": {"type": "integer", "minimum": 1, "maximum": MAX_QUANTITY},
        "item_name": {
            "type": "string",
            "description": "Item name, used when describing the action.",
        },
    },
    "required": ["item_id", "quantity"],
}

VIEW_CART_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {},
    "required": [],
}

CHECKOUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "notes": {
            "type": "string",
            "maxLength": 1000,
            "description": "Optional notes for the purchase request.",
        },
    },
    "required": [],
}


def get_tool_definitions() -> list[dict[str, Any]]:
    """Return the five tool definitions in a stable order."""
    return [
        {
            "name": ToolName.search_catalog.value,
            "description": "Search the catalog for items by keyword. Read-only.",
            "input_schema": SEARCH_CATALOG_SCHEMA,
        },
        {
            "name": ToolName.register_item.value,
            "description": (
                "Register a new item in the catalog. Changes data; "
                "requires user confirmation."
            ),
            "input_schema": REGISTER_ITEM_SCHEMA,
        },
        {
            "name": ToolName.add_to_cart.value,
            "description": (
                "Add a catalog item to the user's cart. Changes data; "
                "requires user confirmation."
            ),
            "input_schema": ADD_TO_CART_SCHEMA,
        },
        {
            "name": ToolName.view_cart.value,
            "description": "Show the current cart contents and total. Read-only.",
            "input_schema": VIEW_CART_SCHEMA,
        },
        {
            "name": ToolName.checkout.value,
            "description": (
                "Submit the cart as a purchase request. Changes data; "
                "requires user confirmation."
            ),
            "input_schema": CHECKOUT_SCHEMA,
        },
    ]
