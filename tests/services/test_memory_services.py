"""Tests for the in-memory catalog, cart and checkout services."""

import re

import pytest

from procureflow.errors import (
    DuplicateSuspectedError,
    EmptyCartError,
    ItemNotFoundError,
    ValidationError,
)
from procureflow.services.domain_services import (
    CartService,
    CatalogService,
    CheckoutService,
)
from procureflow.services.memory_services import build_gateway
from procureflow.services.tool_gateway import ToolGateway


def test_reference_services_satisfy_protocols(catalog, cart_service, checkout_service):
    assert isinstance(catalog, CatalogService)
    assert isinstance(cart_service, CartService)
    assert isinstance(checkout_service, CheckoutService)


def test_build_gateway_fills_missing_collaborators():
    assert isinstance(build_gateway(), ToolGateway)


class TestCatalog:
    @pytest.mark.asyncio
    async def test_search_matches_plural_keyword(self, catalog):
        items = await catalog.search_items("pens")
        assert {i.id for i in items} == {"item-pen-blue", "item-pen-gel"}

    @pytest.mark.asyncio
    async def test_search_requires_every_token(self, catalog):
        items = await catalog.search_items("blue pen")
        assert [i.id for i in items] == ["item-pen-blue"]

    @pytest.mark.asyncio
    async def test_search_without_keyword_lists_catalog(self, catalog):
        assert len(await catalog.search_items(None, limit=3)) == 3

    @pytest.mark.asyncio
    async def test_search_no_match(self, catalog):
        assert await catalog.search_items("unicorn") == []

    @pytest.mark.asyncio
    async def test_create_item(self, catalog):
        item = await catalog.create_item(
            name="Desk Stapler",
            category="Office Supplies",
            description="Heavy duty desktop stapler",
            estimated_price=12.499,
            created_by_user_id="u1",
        )
        assert item.id.startswith("item-")
        assert item.estimated_price == 12.5
        assert catalog.get_item(item.id) == item

    @pytest.mark.asyncio
    async def test_create_item_flags_duplicates(self, catalog):
        with pytest.raises(DuplicateSuspectedError) as exc_info:
            await catalog.create_item(
                name="blue ballpoint pen",
                category="office supplies",
                description="Another blue ballpoint pen",
                estimated_price=5,
            )
        assert exc_info.value.duplicates[0].id == "item-pen-blue"

    @pytest.mark.asyncio
    async def test_create_item_validates_fields(self, catalog):
        with pytest.raises(ValidationError):
            await catalog.create_item(
                name="X", category="Office", description="too short", estimated_price=1,
            )


class TestCart:
    @pytest.mark.asyncio
    async def test_add_merges_quantities(self, cart_service):
        await cart_service.add_item_to_cart("u1", "item-pen-blue", 2)
        cart = await cart_service.add_item_to_cart("u1", "item-pen-blue", 3)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5
        assert cart.total_cost == 24.95
        assert cart.item_count == 5

    @pytest.mark.asyncio
    async def test_carts_are_per_user(self, cart_service):
        await cart_service.add_item_to_cart("u1", "item-pen-blue", 1)
        assert (await cart_service.get_cart_for_user("u2")).is_empty

    @pytest.mark.asyncio
    async def test_unknown_item(self, cart_service):
        with pytest.raises(ItemNotFoundError):
            await cart_service.add_item_to_cart("u1", "item-missing", 1)

    @pytest.mark.asyncio
    async def test_merged_quantity_is_capped(self, cart_service):
        await cart_service.add_item_to_cart("u1", "item-pen-blue", 999)
        with pytest.raises(ValidationError):
            await cart_service.add_item_to_cart("u1", "item-pen-blue", 1)


class TestCheckout:
    @pytest.mark.asyncio
    async def test_checkout_creates_request_and_clears_cart(
        self, cart_service, checkout_service,
    ):
        await cart_service.add_item_to_cart("u1", "item-pen-blue", 10)

        request = await checkout_service.checkout_cart("u1", notes="  for the team ")

        assert re.fullmatch(r"PR-\d{4}-0001", request.request_number)
        assert request.total == 49.9
        assert request.notes == "for the team"
        assert request.items[0].item_category == "Office Supplies"
        assert (await cart_service.get_cart_for_user("u1")).is_empty
        assert checkout_service.purchase_requests == [request]

    @pytest.mark.asyncio
    async def test_request_numbers_increase(self, cart_service, checkout_service):
        numbers = []
        for _ in range(2):
            await cart_service.add_item_to_cart("u1", "item-notebook-a5", 1)
            numbers.append((await checkout_service.checkout_cart("u1")).request_number)
        assert numbers[0].endswith("0001")
        assert numbers[1].endswith("0002")

    @pytest.mark.asyncio
    async def test_empty_cart(self, checkout_service):
        with pytest.raises(EmptyCartError):
            await checkout_service.checkout_cart("u1")
