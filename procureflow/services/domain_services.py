"""Collaborator protocols for the catalog, cart and checkout services.

The agent only sees these interfaces; the services' internals belong to
the surrounding procurement application. Implementations raise errors
from ``procureflow.errors`` (ValidationError, DuplicateSuspectedError,
ItemNotFoundError, EmptyCartError). Anything else is treated as the
service being unavailable.
"""

from typing import Optional, Protocol, runtime_checkable

from procureflow.orchestrator.models.conversation import (
    CartSnapshot,
    CatalogItem,
    PurchaseRequestSnapshot,
)


@runtime_checkable
class CatalogService(Protocol):
    """Catalog search and item registration."""

    async def search_items(
        self, q: Optional[str] = None, limit: Optional[int] = None,
    ) -> list[CatalogItem]:
        """Search items by keyword. Empty list when nothing matches."""
        ...

    async def create_item(
        self,
        name: str,
        category: str,
        description: str,
        estimated_price: float,
        created_by_user_id: Optional[str] = None,
    ) -> CatalogItem:
        """Register a new catalog item.

        Raises:
            ValidationError: Malformed fields.
            DuplicateSuspectedError: A likely duplicate already exists.
        """
        ...


@runtime_checkable
class CartService(Protocol):
    """Per-user shopping cart."""

    async def add_item_to_cart(
        self, user_id: str, item_id: str, quantity: int,
    ) -> CartSnapshot:
        """Add ``quantity`` of an item, merging with an existing line.

        Raises:
            ItemNotFoundError: Unknown item id.
            ValidationError: Quantity outside [1, 999] after merging.
        """
        ...

    async def get_cart_for_user(self, user_id: str) -> CartSnapshot:
        """Return the user's cart (empty when none exists)."""
        ...


@runtime_checkable
class CheckoutService(Protocol):
    """Turns a cart into a purchase request."""

    async def checkout_cart(
        self, user_id: str, notes: Optional[str] = None,
    ) -> PurchaseRequestSnapshot:
        """Create a purchase request from the cart and clear the cart.

        Raises:
            EmptyCartError: Cart has no items.
            ValidationError: Malformed notes.
        """
        ...
