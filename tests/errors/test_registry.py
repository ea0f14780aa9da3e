"""Unit tests for the error registry and formatter."""

import pytest

from procureflow.errors import (
    AuthenticationRequiredError,
    ConversationNotFoundError,
    DuplicateSuspectedError,
    EmptyCartError,
    EmptyMessageError,
    ItemNotFoundError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ValidationError,
    describe_exception,
    format_error,
)
from procureflow.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    get_error,
    get_errors_by_category,
)
from procureflow.orchestrator.models.conversation import CatalogItem


@pytest.mark.parametrize(
    "code,category,title",
    [
        ("E-1001", ErrorCategory.VALIDATION, "Empty Message"),
        ("E-1002", ErrorCategory.VALIDATION, "Invalid Request Details"),
        ("E-2001", ErrorCategory.DOMAIN, "Item Not Found"),
        ("E-2002", ErrorCategory.DOMAIN, "Empty Cart"),
        ("E-2003", ErrorCategory.DOMAIN, "Possible Duplicate Item"),
        ("E-2004", ErrorCategory.DOMAIN, "Conversation Not Found"),
        ("E-3001", ErrorCategory.PROVIDER, "Assistant Unavailable"),
        ("E-3002", ErrorCategory.PROVIDER, "Request Timed Out"),
        ("E-3003", ErrorCategory.PROVIDER, "Service Unavailable"),
        ("E-4001", ErrorCategory.SYSTEM, "Technical Issue"),
        ("E-5001", ErrorCategory.AUTH, "Sign-in Required"),
    ],
)
def test_error_codes_registered(code, category, title):
    error = get_error(code)
    assert error is not None, f"{code} not found in registry"
    assert error.category == category
    assert error.title == title


def test_registry_keys_match_codes():
    for key, error in ERROR_REGISTRY.items():
        assert key == error.code


def test_provider_errors_are_retryable():
    assert all(e.is_retryable for e in get_errors_by_category(ErrorCategory.PROVIDER))


class TestFormatError:
    def test_substitutes_context(self):
        formatted = format_error("E-2001", item_id="item-x")
        assert formatted.message == "I couldn't find an item with ID 'item-x'."

    def test_unknown_code_falls_back_to_system_error(self):
        assert format_error("E-9999").code == "E-4001"

    def test_missing_placeholder_keeps_template(self):
        assert "{item_id}" in format_error("E-2001").message

    def test_render_joins_message_and_remediation(self):
        assert format_error("E-2002").render() == (
            "Your cart is empty, so there is nothing to check out. "
            "Add items to your cart before checking out."
        )


class TestDescribeException:
    def test_empty_message(self):
        assert describe_exception(EmptyMessageError()).code == "E-1001"

    def test_authentication_required(self):
        formatted = describe_exception(AuthenticationRequiredError("check out"))
        assert formatted.code == "E-5001"
        assert formatted.message == "You need to be signed in to check out."

    def test_validation_error_includes_detail(self):
        formatted = describe_exception(ValidationError("quantity too large"))
        assert formatted.code == "E-1002"
        assert "quantity too large" in formatted.message

    def test_item_not_found(self):
        formatted = describe_exception(ItemNotFoundError("item-x"))
        assert formatted.code == "E-2001"
        assert "item-x" in formatted.message

    def test_conversation_not_found(self):
        formatted = describe_exception(ConversationNotFoundError("conv-1"))
        assert formatted.code == "E-2004"
        assert "conv-1" in formatted.message

    def test_empty_cart(self):
        assert describe_exception(EmptyCartError()).code == "E-2002"

    def test_duplicate_lists_matches(self):
        duplicate = CatalogItem(
            id="item-pen-blue",
            name="Blue Ballpoint Pen",
            category="Office Supplies",
            estimated_price=4.99,
        )
        formatted = describe_exception(
            DuplicateSuspectedError("Potential duplicate", [duplicate])
        )
        assert formatted.code == "E-2003"
        assert '"Blue Ballpoint Pen"' in formatted.message

    def test_timeout(self):
        formatted = describe_exception(ProviderTimeoutError("cart service", 5))
        assert formatted.code == "E-3002"
        assert formatted.message == "The cart service took too long to respond."

    def test_unavailable(self):
        formatted = describe_exception(ProviderUnavailableError("checkout service"))
        assert formatted.code == "E-3003"
        assert "checkout service" in formatted.message

    def test_unexpected_exception(self):
        assert describe_exception(RuntimeError("boom")).code == "E-4001"


def test_timeout_is_a_kind_of_unavailability():
    assert issubclass(ProviderTimeoutError, ProviderUnavailableError)
    assert ProviderTimeoutError("assistant", 30).message == (
        "assistant did not respond within 30s"
    )
