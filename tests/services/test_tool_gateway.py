"""Tests for ToolGateway preconditions and error normalization."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from procureflow.errors import (
    AuthenticationRequiredError,
    EmptyCartError,
    ItemNotFoundError,
    ProviderUnavailableError,
    ValidationError,
)
from procureflow.services.tool_gateway import ToolGateway, clamp_search_limit


@pytest.mark.parametrize(
    "limit,expected",
    [(None, 10), (0, 1), (5, 5), (50, 50), (500, 50)],
)
def test_clamp_search_limit(limit, expected):
    assert clamp_search_limit(limit) == expected


def _gateway_with(catalog=None, cart=None, checkout=None) -> ToolGateway:
    return ToolGateway(
        catalog=catalog or MagicMock(),
        cart=cart or MagicMock(),
        checkout=checkout or MagicMock(),
    )


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_returns_items(self, gateway):
        items = await gateway.search_catalog("pens")
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_blank_keyword_searches_everything(self):
        catalog = MagicMock()
        catalog.search_items = AsyncMock(return_value=[])
        gateway = _gateway_with(catalog=catalog)

        await gateway.search_catalog("   ", limit=500)

        catalog.search_items.assert_awaited_once_with(q=None, limit=50)


class TestAddToCart:
    @pytest.mark.asyncio
    async def test_requires_user(self, gateway):
        with pytest.raises(AuthenticationRequiredError) as exc_info:
            await gateway.add_to_cart(None, "item-pen-blue", 1)
        assert exc_info.value.operation == "add items to your cart"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, 1000])
    async def test_rejects_quantity_before_calling_service(self, quantity):
        cart = MagicMock()
        cart.add_item_to_cart = AsyncMock()
        gateway = _gateway_with(cart=cart)

        with pytest.raises(ValidationError):
            await gateway.add_to_cart("u1", "item-pen-blue", quantity)
        cart.add_item_to_cart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self, gateway):
        with pytest.raises(ItemNotFoundError):
            await gateway.add_to_cart("u1", "item-missing", 1)

    @pytest.mark.asyncio
    async def test_adds(self, gateway):
        cart = await gateway.add_to_cart("u1", "item-pen-blue", 10)
        assert cart.item_count == 10


class TestViewCartAndCheckout:
    @pytest.mark.asyncio
    async def test_view_requires_user(self, gateway):
        with pytest.raises(AuthenticationRequiredError):
            await gateway.view_cart(None)

    @pytest.mark.asyncio
    async def test_checkout_requires_user(self, gateway):
        with pytest.raises(AuthenticationRequiredError) as exc_info:
            await gateway.checkout("")
        assert exc_info.value.operation == "check out"

    @pytest.mark.asyncio
    async def test_checkout_empty_cart(self, gateway):
        with pytest.raises(EmptyCartError):
            await gateway.checkout("u1")


class TestUnexpectedFailures:
    @pytest.mark.asyncio
    async def test_non_domain_exception_becomes_unavailable(self):
        catalog = MagicMock()
        catalog.search_items = AsyncMock(side_effect=ConnectionError("db down"))
        gateway = _gateway_with(catalog=catalog)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await gateway.search_catalog("pens")
        assert exc_info.value.service == "catalog service"

    @pytest.mark.asyncio
    async def test_checkout_failure_names_checkout_service(self):
        checkout = MagicMock()
        checkout.checkout_cart = AsyncMock(side_effect=RuntimeError("boom"))
        gateway = _gateway_with(checkout=checkout)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await gateway.checkout("u1")
        assert exc_info.value.service == "checkout service"
