"""Error code registry with E-XXXX format codes.

Organizes the errors the agent can report to a user into categories:
- E-1xxx: Validation errors
- E-2xxx: Catalog, cart and conversation errors
- E-3xxx: Completion provider / service availability errors
- E-4xxx: System/internal errors
- E-5xxx: Authentication errors

Each error includes a code, title, message template, and remediation.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-1xxx
    DOMAIN = "domain"  # E-2xxx
    PROVIDER = "provider"  # E-3xxx
    SYSTEM = "system"  # E-4xxx
    AUTH = "auth"  # E-5xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Validation errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.VALIDATION,
        title="Empty Message",
        message_template="Your message was empty.",
        remediation="Type a request, for example 'search for pens'.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.VALIDATION,
        title="Invalid Request Details",
        message_template="Some of the details were not valid: {detail}",
        remediation="Correct the details and ask again.",
    ),
    "E-1003": ErrorCode(
        code="E-1003",
        category=ErrorCategory.VALIDATION,
        title="Invalid Quantity",
        message_template="Quantity {quantity} is out of range.",
        remediation="Choose a quantity between 1 and 999.",
    ),
    # Catalog / cart / conversation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.DOMAIN,
        title="Item Not Found",
        message_template="I couldn't find an item with ID '{item_id}'.",
        remediation="Search the catalog to find the right item ID.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.DOMAIN,
        title="Empty Cart",
        message_template="Your cart is empty, so there is nothing to check out.",
        remediation="Add items to your cart before checking out.",
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.DOMAIN,
        title="Possible Duplicate Item",
        message_template="The catalog already has items that look like this one{matches}.",
        remediation="Use the existing item, or register it with a more specific name.",
    ),
    "E-2004": ErrorCode(
        code="E-2004",
        category=ErrorCategory.DOMAIN,
        title="Conversation Not Found",
        message_template="Conversation '{conversation_id}' was not found.",
        remediation="Start a new conversation.",
    ),
    # Provider / availability errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.PROVIDER,
        title="Assistant Unavailable",
        message_template="I'm sorry, I'm having trouble thinking right now.",
        remediation="Please try again in a moment.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.PROVIDER,
        title="Request Timed Out",
        message_template="The {service} took too long to respond.",
        remediation="Please try again in a moment.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.PROVIDER,
        title="Service Unavailable",
        message_template="The {service} is not available right now.",
        remediation="Please try again in a moment.",
        is_retryable=True,
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Technical Issue",
        message_template="I ran into a technical issue while handling your request.",
        remediation="Please try again. If it keeps happening, start a new conversation.",
    ),
    # Authentication errors (E-5xxx)
    "E-5001": ErrorCode(
        code="E-5001",
        category=ErrorCategory.AUTH,
        title="Sign-in Required",
        message_template="You need to be signed in to {operation}.",
        remediation="Sign in and try again.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Look up an error code in the registry.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all error codes in a category.

    Args:
        category: The category to filter by.

    Returns:
        List of ErrorCode objects in that category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
