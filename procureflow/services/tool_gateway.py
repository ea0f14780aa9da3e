"""ToolGateway: the five agent capabilities over the domain collaborators.

Pure adapter. Each operation checks the preconditions the agent is
responsible for (caller identity, quantity bounds, search limit), then
delegates to the catalog, cart or checkout service. Errors from the
taxonomy in ``procureflow.errors`` pass through unchanged; any other
exception is logged and normalized to ProviderUnavailableError so the
executor only ever sees one error shape.
"""

import logging
from collections.abc import Awaitable
from typing import Optional, TypeVar

from procureflow.errors import (
    AuthenticationRequiredError,
    DomainError,
    ProviderUnavailableError,
    ValidationError,
)
from procureflow.orchestrator.models.conversation import (
    CartSnapshot,
    CatalogItem,
    PurchaseRequestSnapshot,
)
from procureflow.orchestrator.models.tool_calls import MAX_QUANTITY, MAX_SEARCH_LIMIT
from procureflow.services.domain_services import (
    CartService,
    CatalogService,
    CheckoutService,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SEARCH_LIMIT = 10

CATALOG_SERVICE = "catalog service"
CART_SERVICE = "cart service"
CHECKOUT_SERVICE = "checkout service"


def clamp_search_limit(limit: Optional[int]) -> int:
    """Default to 10 and clamp to [1, MAX_SEARCH_LIMIT]."""
    if limit is None:
        return DEFAULT_SEARCH_LIMIT
    return max(1, min(int(limit), MAX_SEARCH_LIMIT))


def _require_user(user_id: Optional[str], operation: str) -> str:
    if not user_id:
        raise AuthenticationRequiredError(operation)
    return user_id


class ToolGateway:
    """Exposes SearchCatalog, RegisterItem, AddToCart, ViewCart, Checkout.

    Args:
        catalog: Catalog collaborator.
        cart: Cart collaborator.
        checkout: Checkout collaborator.
    """

    def __init__(
        self,
        catalog: CatalogService,
        cart: CartService,
        checkout: CheckoutService,
    ) -> None:
        self._catalog = catalog
        self._cart = cart
        self._checkout = checkout

    async def search_catalog(
        self, keyword: Optional[str] = None, limit: Optional[int] = None,
    ) -> list[CatalogItem]:
        """Search the catalog. Empty list when nothing matches."""
        keyword = keyword.strip() if keyword else None
        return await self._call(
            CATALOG_SERVICE,
            self._catalog.search_items(q=keyword or None, limit=clamp_search_limit(limit)),
        )

    async def register_item(
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
            DuplicateSuspectedError: The catalog flagged a likely duplicate.
        """
        return await self._call(
            CATALOG_SERVICE,
            self._catalog.create_item(
                name=name,
                category=category,
                description=description,
                estimated_price=estimated_price,
                created_by_user_id=created_by_user_id,
            ),
        )

    async def add_to_cart(
        self, user_id: Optional[str], item_id: str, quantity: int,
    ) -> CartSnapshot:
        """Add an item to the caller's cart.

        Raises:
            AuthenticationRequiredError: No caller identity.
            ValidationError: Quantity outside [1, 999].
            ItemNotFoundError: Unknown item id.
        """
        user_id = _require_user(user_id, "add items to your cart")
        if not 1 <= quantity <= MAX_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {MAX_QUANTITY}")
        return await self._call(
            CART_SERVICE,
            self._cart.add_item_to_cart(user_id, item_id, quantity),
        )

    async def view_cart(self, user_id: Optional[str]) -> CartSnapshot:
        """Return the caller's cart.

        Raises:
            AuthenticationRequiredError: No caller identity.
        """
        user_id = _require_user(user_id, "view your cart")
        return await self._call(CART_SERVICE, self._cart.get_cart_for_user(user_id))

    async def checkout(
        self, user_id: Optional[str], notes: Optional[str] = None,
    ) -> PurchaseRequestSnapshot:
        """Submit the caller's cart as a purchase request.

        Raises:
            AuthenticationRequiredError: No caller identity.
            EmptyCartError: Cart has no items.
        """
        user_id = _require_user(user_id, "check out")
        return await self._call(
            CHECKOUT_SERVICE,
            self._checkout.checkout_cart(user_id, notes=notes),
        )

    async def _call(self, service: str, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except DomainError:
            raise
        except Exception as e:
            logger.warning("%s failed: %s: %s", service, type(e).__name__, e)
            raise ProviderUnavailableError(service) from e
