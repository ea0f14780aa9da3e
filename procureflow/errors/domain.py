"""Typed domain exceptions for the agent error taxonomy.

Every exception carries an E-XXXX ``code`` that keys into the error
registry, so callers can render user-facing text without string
matching. Routes catch the client-facing subset (ValidationError,
ConversationNotFoundError) and map them to HTTP status codes.

Usage:
    # In service layer
    raise ItemNotFoundError(item_id)

    # In route handler
    try:
        conversation = await store.get_conversation(conversation_id)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
"""

from typing import Any


class DomainError(Exception):
    """Base exception for all domain errors."""

    code = "E-4001"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed input. Maps to HTTP 400."""

    code = "E-1002"


class EmptyMessageError(ValidationError):
    """Chat message is empty after trimming."""

    code = "E-1001"

    def __init__(self) -> None:
        super().__init__("Message cannot be empty")


class AuthenticationRequiredError(ValidationError):
    """Operation needs a signed-in user but none was supplied."""

    code = "E-5001"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Authentication required to {operation}")
        self.operation = operation


class NotFoundError(DomainError):
    """Resource was not found. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class ConversationNotFoundError(NotFoundError):
    """Caller supplied an unknown (or someone else's) conversation id."""

    code = "E-2004"

    def __init__(self, conversation_id: str) -> None:
        super().__init__("Conversation", conversation_id)
        self.conversation_id = conversation_id


class ItemNotFoundError(NotFoundError):
    """Catalog item does not exist."""

    code = "E-2001"

    def __init__(self, item_id: str) -> None:
        super().__init__("Item", item_id)
        self.item_id = item_id


class EmptyCartError(DomainError):
    """Checkout attempted with no items in the cart."""

    code = "E-2002"

    def __init__(self) -> None:
        super().__init__("Cart is empty. Add items before checking out.")


class DuplicateSuspectedError(DomainError):
    """Catalog service flagged a likely duplicate item. Maps to HTTP 409."""

    code = "E-2003"

    def __init__(self, message: str, duplicates: list[Any] | None = None) -> None:
        super().__init__(message)
        self.duplicates = duplicates or []


class ProviderUnavailableError(DomainError):
    """Completion provider or downstream domain service failed."""

    code = "E-3003"

    def __init__(self, service: str, message: str | None = None) -> None:
        super().__init__(message or f"{service} is unavailable")
        self.service = service


class ProviderTimeoutError(ProviderUnavailableError):
    """Completion provider or downstream service exceeded its time bound."""

    code = "E-3002"

    def __init__(self, service: str, timeout_seconds: float) -> None:
        super().__init__(
            service, f"{service} did not respond within {timeout_seconds:g}s",
        )
        self.timeout_seconds = timeout_seconds
