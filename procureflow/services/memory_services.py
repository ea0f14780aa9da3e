"""In-memory reference implementations of the domain collaborators.

Used by the CLI chat REPL, local API runs without a procurement backend,
and tests. Business rules follow the procurement application: keyword
search over name/category/description, duplicate detection on name plus
category, quantities capped at 999 per line, and purchase request numbers
of the form PR-YYYY-####.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Optional

from procureflow.db.models import generate_uuid
from procureflow.errors import (
    DuplicateSuspectedError,
    EmptyCartError,
    ItemNotFoundError,
    ValidationError,
)
from procureflow.orchestrator.models.conversation import (
    CartLine,
    CartSnapshot,
    CatalogItem,
    PurchaseRequestLine,
    PurchaseRequestSnapshot,
)
from procureflow.orchestrator.models.tool_calls import MAX_QUANTITY
from procureflow.services.domain_services import (
    CartService,
    CatalogService,
    CheckoutService,
)
from procureflow.services.tool_gateway import ToolGateway

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
MAX_NOTES_LENGTH = 1000

SEED_ITEMS: tuple[CatalogItem, ...] = (
    CatalogItem(
        id="item-pen-blue",
        name="Blue Ballpoint Pen",
        category="Office Supplies",
        description="Medium point ballpoint pen with blue ink, box of 12.",
        estimated_price=4.99,
    ),
    CatalogItem(
        id="item-pen-gel",
        name="Black Gel Pen",
        category="Office Supplies",
        description="Smooth-writing 0.7mm gel pen with black ink, pack of 6.",
        estimated_price=7.49,
    ),
    CatalogItem(
        id="item-notebook-a5",
        name="A5 Ruled Notebook",
        category="Office Supplies",
        description="Hardcover A5 notebook with 192 ruled pages.",
        estimated_price=6.25,
    ),
    CatalogItem(
        id="item-laptop-14",
        name="14-inch Business Laptop",
        category="IT Equipment",
        description="14-inch laptop with 16GB RAM and 512GB SSD for office work.",
        estimated_price=1249.00,
        availability="limited",
    ),
    CatalogItem(
        id="item-monitor-27",
        name="27-inch 4K Monitor",
        category="IT Equipment",
        description="27-inch IPS monitor with 4K resolution and USB-C input.",
        estimated_price=389.00,
    ),
    CatalogItem(
        id="item-chair-ergo",
        name="Ergonomic Office Chair",
        category="Furniture",
        description="Adjustable ergonomic chair with lumbar support and armrests.",
        estimated_price=299.00,
        availability="out_of_stock",
    ),
)


def _round_money(value: float) -> float:
    return round(value, 2)


def _keyword_tokens(q: str) -> list[str]:
    return [t for t in q.lower().split() if t]


def _token_matches(token: str, haystack: str) -> bool:
    if token in haystack:
        return True
    # Simple plural tolerance: "pens" matches "pen"
    return len(token) > 3 and token.endswith("s") and token[:-1] in haystack


def validate_item_fields(
    name: str, category: str, description: str, estimated_price: float,
) -> tuple[str, str, str]:
    """Validate and normalize catalog item fields.

    Returns:
        Stripped (name, category, description).

    Raises:
        ValidationError: Any field outside its allowed range.
    """
    name = (name or "").strip()
    category = (category or "").strip()
    description = (description or "").strip()

    if not 2 <= len(name) <= 200:
        raise ValidationError("Name must be between 2 and 200 characters")
    if not 2 <= len(category) <= 100:
        raise ValidationError("Category must be between 2 and 100 characters")
    if not 10 <= len(description) <= 2000:
        raise ValidationError("Description must be between 10 and 2000 characters")
    if (
        not isinstance(estimated_price, (int, float))
        or not math.isfinite(estimated_price)
        or estimated_price <= 0
    ):
        raise ValidationError("Estimated price must be a positive number")
    return name, category, description


class InMemoryCatalogService:
    """Catalog held in a dict, seeded with a handful of office items."""

    def __init__(self, items: tuple[CatalogItem, ...] | list[CatalogItem] = SEED_ITEMS) -> None:
        self._items: dict[str, CatalogItem] = {item.id: item for item in items}

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        return self._items.get(item_id)

    async def search_items(
        self, q: Optional[str] = None, limit: Optional[int] = None,
    ) -> list[CatalogItem]:
        limit = limit or DEFAULT_SEARCH_LIMIT
        items = list(self._items.values())
        tokens = _keyword_tokens(q or "")
        if tokens:
            items = [
                item
                for item in items
                if all(
                    _token_matches(
                        t,
                        f"{item.name} {item.category} {item.description}".lower(),
                    )
                    for t in tokens
                )
            ]
        return items[:limit]

    async def create_item(
        self,
        name: str,
        category: str,
        description: str,
        estimated_price: float,
        created_by_user_id: Optional[str] = None,
    ) -> CatalogItem:
        name, category, description = validate_item_fields(
            name, category, description, estimated_price,
        )
        duplicates = [
            item
            for item in self._items.values()
            if item.name.lower() == name.lower()
            and item.category.lower() == category.lower()
        ]
        if duplicates:
            raise DuplicateSuspectedError(
                "Potential duplicate items found with similar name and category",
                duplicates,
            )

        item = CatalogItem(
            id=f"item-{generate_uuid()[:8]}",
            name=name,
            category=category,
            description=description,
            estimated_price=_round_money(estimated_price),
        )
        self._items[item.id] = item
        logger.info("Registered catalog item %s (by %s)", item.id, created_by_user_id)
        return item


@dataclass
class _Cart:
    lines: dict[str, int] = field(default_factory=dict)


class InMemoryCartService:
    """Per-user carts keyed by user id, priced from the catalog."""

    def __init__(self, catalog: InMemoryCatalogService) -> None:
        self._catalog = catalog
        self._carts: dict[str, _Cart] = {}

    def _snapshot(self, cart: _Cart) -> CartSnapshot:
        lines = []
        for item_id, quantity in cart.lines.items():
            item = self._catalog.get_item(item_id)
            if item is None:
                continue
            lines.append(CartLine(
                item_id=item.id,
                item_name=item.name,
                item_price=item.estimated_price,
                quantity=quantity,
                subtotal=_round_money(item.estimated_price * quantity),
            ))
        return CartSnapshot(
            items=lines,
            total_cost=_round_money(sum(line.subtotal for line in lines)),
            item_count=sum(line.quantity for line in lines),
        )

    async def add_item_to_cart(
        self, user_id: str, item_id: str, quantity: int,
    ) -> CartSnapshot:
        if not 1 <= quantity <= MAX_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {MAX_QUANTITY}")
        if self._catalog.get_item(item_id) is None:
            raise ItemNotFoundError(item_id)

        cart = self._carts.setdefault(user_id, _Cart())
        new_quantity = cart.lines.get(item_id, 0) + quantity
        if new_quantity > MAX_QUANTITY:
            raise ValidationError(
                f"Cart quantity for this item cannot exceed {MAX_QUANTITY}"
            )
        cart.lines[item_id] = new_quantity
        return self._snapshot(cart)

    async def get_cart_for_user(self, user_id: str) -> CartSnapshot:
        return self._snapshot(self._carts.get(user_id, _Cart()))

    def clear(self, user_id: str) -> None:
        self._carts.pop(user_id, None)


class InMemoryCheckoutService:
    """Creates purchase requests from carts and empties the cart."""

    def __init__(
        self, catalog: InMemoryCatalogService, carts: InMemoryCartService,
    ) -> None:
        self._catalog = catalog
        self._carts = carts
        self._requests: list[PurchaseRequestSnapshot] = []
        self._sequence_by_year: dict[int, int] = {}

    @property
    def purchase_requests(self) -> list[PurchaseRequestSnapshot]:
        return list(self._requests)

    def _next_request_number(self) -> str:
        year = datetime.now(UTC).year
        sequence = self._sequence_by_year.get(year, 0) + 1
        self._sequence_by_year[year] = sequence
        return f"PR-{year}-{sequence:04d}"

    async def checkout_cart(
        self, user_id: str, notes: Optional[str] = None,
    ) -> PurchaseRequestSnapshot:
        notes = (notes or "").strip()
        if len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(
                f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"
            )

        cart = await self._carts.get_cart_for_user(user_id)
        if cart.is_empty:
            raise EmptyCartError()

        lines = []
        for line in cart.items:
            item = self._catalog.get_item(line.item_id)
            lines.append(PurchaseRequestLine(
                item_name=line.item_name,
                item_category=item.category if item else "",
                quantity=line.quantity,
                unit_price=line.item_price,
                subtotal=line.subtotal,
            ))

        request = PurchaseRequestSnapshot(
            id=generate_uuid(),
            request_number=self._next_request_number(),
            items=lines,
            total=cart.total_cost,
            status="submitted",
            notes=notes,
        )
        self._requests.append(request)
        self._carts.clear(user_id)
        logger.info(
            "Created purchase request %s for user %s", request.request_number, user_id,
        )
        return request


def build_gateway(
    catalog: Optional[CatalogService] = None,
    cart: Optional[CartService] = None,
    checkout: Optional[CheckoutService] = None,
) -> ToolGateway:
    """Build a ToolGateway, filling missing collaborators with in-memory ones.

    Args:
        catalog: Catalog collaborator.
        cart: Cart collaborator.
        checkout: Checkout collaborator.

    Returns:
        ToolGateway over the given (or reference) services.
    """
    if catalog is None or cart is None or checkout is None:
        memory_catalog = InMemoryCatalogService()
        memory_cart = InMemoryCartService(memory_catalog)
        catalog = catalog or memory_catalog
        cart = cart or memory_cart
        checkout = checkout or InMemoryCheckoutService(memory_catalog, memory_cart)
    return ToolGateway(catalog=catalog, cart=cart, checkout=checkout)
