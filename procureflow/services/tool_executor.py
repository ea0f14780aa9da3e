"""ToolExecutor: runs approved tool calls and packages their results.

Dispatch is an exhaustive ``match`` over the tool call union. Every
gateway call is bounded by a timeout; a timeout counts as the service
being unavailable. Domain errors become plain-language text from the
error registry, so nothing raised below this layer reaches the user as
an exception.

Example:
    executor = ToolExecutor(gateway, timeout_seconds=5.0)
    result = await executor.execute(AddToCartCall(item_id="x", quantity=3, user_id="u1"))
"""

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Optional, TypeVar, assert_never

from procureflow.config import DEFAULT_TOOL_TIMEOUT_SECONDS
from procureflow.errors import (
    AuthenticationRequiredError,
    DomainError,
    EmptyCartError,
    ProviderTimeoutError,
    describe_exception,
)
from procureflow.orchestrator.models.conversation import (
    Attachment,
    CartAttachment,
    CartSnapshot,
    CatalogItem,
    CheckoutConfirmationAttachment,
    ItemsAttachment,
    PurchaseRequestAttachment,
)
from procureflow.orchestrator.models.tool_calls import (
    AddToCartCall,
    CheckoutCall,
    RegisterItemCall,
    SearchCatalogCall,
    ToolCall,
    ViewCartCall,
)
from procureflow.services.tool_gateway import (
    CART_SERVICE,
    CATALOG_SERVICE,
    CHECKOUT_SERVICE,
    ToolGateway,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTACHED_ITEMS = 10

CONFIRMATION_PROMPT = 'Reply "yes" to confirm or "no" to cancel.'


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of executing (or previewing) a tool call.

    Attributes:
        text: Reply text for the user.
        attachment: Structured payload, if any.
        succeeded: False when a domain error was translated into ``text``.
        error_code: Registry code of the translated error.
    """

    text: str
    attachment: Optional[Attachment] = None
    succeeded: bool = True
    error_code: Optional[str] = None


def _service_for(call: ToolCall) -> str:
    match call:
        case SearchCatalogCall() | RegisterItemCall():
            return CATALOG_SERVICE
        case AddToCartCall() | ViewCartCall():
            return CART_SERVICE
        case CheckoutCall():
            return CHECKOUT_SERVICE
        case _:
            assert_never(call)


def _format_items(items: list[CatalogItem]) -> str:
    return "\n\n".join(
        f"{i}. {item.name} ({item.category}) - ${item.estimated_price:,.2f}\n"
        f"   ID: {item.id}\n"
        f"   {item.description or 'No description available'}"
        for i, item in enumerate(items, start=1)
    )


def _format_cart(cart: CartSnapshot) -> str:
    lines = "\n\n".join(
        f"{i}. {line.item_name} × {line.quantity} = ${line.subtotal:,.2f}\n"
        f"   ID: {line.item_id} | Unit price: ${line.item_price:,.2f}"
        for i, line in enumerate(cart.items, start=1)
    )
    return (
        f"Your cart contains {len(cart.items)} item type(s) "
        f"({cart.item_count} total items):\n\n{lines}\n\n"
        f"**Total: ${cart.total_cost:,.2f}**"
    )


def error_result(exc: BaseException) -> ExecutionResult:
    """Translate an exception into a failed ExecutionResult."""
    formatted = describe_exception(exc)
    return ExecutionResult(
        text=formatted.render(), succeeded=False, error_code=formatted.code,
    )


class ToolExecutor:
    """Invokes the ToolGateway for approved calls.

    Attributes:
        timeout_seconds: Bound on each gateway call.
    """

    def __init__(
        self,
        gateway: ToolGateway,
        timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS,
    ) -> None:
        self._gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def execute(
        self, call: ToolCall, conversation_id: Optional[str] = None,
    ) -> ExecutionResult:
        """Execute a call and build the reply text and attachment.

        Args:
            call: Approved tool call with caller identity bound.
            conversation_id: For logging only.

        Returns:
            ExecutionResult; domain failures are reported in ``text``.
        """
        start = time.monotonic()
        try:
            result = await self._dispatch(call)
        except DomainError as e:
            logger.info(
                "Tool %s failed in conversation %s: %s (%s)",
                call.tool, conversation_id, type(e).__name__, e.code,
            )
            result = error_result(e)

        logger.info(
            "Executed %s in conversation %s (ok=%s, %.0fms)",
            call.tool, conversation_id, result.succeeded,
            (time.monotonic() - start) * 1000,
        )
        return result

    async def preview(self, call: ToolCall) -> ExecutionResult:
        """Build the confirmation message for a mutating proposal.

        Checkout proposals also carry a read-only preview of the cart. An
        empty cart, or a cart action from an anonymous caller, fails here
        before the user is asked to confirm.

        Returns:
            ExecutionResult whose ``text`` asks for confirmation, or a
            failed result when the action cannot be proposed.
        """
        match call:
            case AddToCartCall(user_id=None):
                return error_result(AuthenticationRequiredError("add items to your cart"))
            case CheckoutCall(user_id=None):
                return error_result(AuthenticationRequiredError("check out"))
            case CheckoutCall(user_id=user_id):
                try:
                    cart = await self._bounded(
                        CART_SERVICE, self._gateway.view_cart(user_id),
                    )
                    if cart.is_empty:
                        raise EmptyCartError()
                except DomainError as e:
                    return error_result(e)
                return ExecutionResult(
                    text=(
                        f"{call.describe()} Your cart has {cart.item_count} "
                        f"item(s) totaling ${cart.total_cost:,.2f}. "
                        f"{CONFIRMATION_PROMPT}"
                    ),
                    attachment=CheckoutConfirmationAttachment(
                        items=cart.items,
                        total=cart.total_cost,
                        item_count=cart.item_count,
                    ),
                )
            case _:
                return ExecutionResult(text=f"{call.describe()} {CONFIRMATION_PROMPT}")

    async def current_cart(self, user_id: Optional[str]) -> CartSnapshot:
        """Read-only cart lookup used for prompt context.

        Raises:
            DomainError: Any gateway failure, including timeouts.
        """
        return await self._bounded(CART_SERVICE, self._gateway.view_cart(user_id))

    async def _bounded(self, service: str, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except TimeoutError as e:
            raise ProviderTimeoutError(service, self.timeout_seconds) from e

    async def _dispatch(self, call: ToolCall) -> ExecutionResult:
        service = _service_for(call)
        match call:
            case SearchCatalogCall(keyword=keyword, limit=limit):
                items = await self._bounded(
                    service, self._gateway.search_catalog(keyword=keyword, limit=limit),
                )
                return self._search_result(keyword, items)

            case RegisterItemCall():
                item = await self._bounded(
                    service,
                    self._gateway.register_item(
                        name=call.name,
                        category=call.category,
                        description=call.description,
                        estimated_price=call.estimated_price,
                        created_by_user_id=call.created_by_user_id,
                    ),
                )
                return ExecutionResult(
                    text=(
                        f'Registered "{item.name}" in {item.category} '
                        f"(ID: {item.id}) at an estimated "
                        f"${item.estimated_price:,.2f}."
                    ),
                    attachment=ItemsAttachment(items=[item]),
                )

            case AddToCartCall(user_id=user_id, item_id=item_id, quantity=quantity):
                cart = await self._bounded(
                    service, self._gateway.add_to_cart(user_id, item_id, quantity),
                )
                line = next((ln for ln in cart.items if ln.item_id == item_id), None)
                name = line.item_name if line else (call.item_name or item_id)
                return ExecutionResult(
                    text=(
                        f'Successfully added {quantity} × "{name}" to your cart. '
                        f"Cart total: ${cart.total_cost:,.2f} "
                        f"({len(cart.items)} item types, {cart.item_count} total items)."
                    ),
                    attachment=CartAttachment(cart=cart),
                )

            case ViewCartCall(user_id=user_id):
                cart = await self._bounded(service, self._gateway.view_cart(user_id))
                if cart.is_empty:
                    return ExecutionResult(
                        text="Your cart is empty. Use search to find items to add.",
                        attachment=CartAttachment(cart=cart),
                    )
                return ExecutionResult(
                    text=_format_cart(cart), attachment=CartAttachment(cart=cart),
                )

            case CheckoutCall(user_id=user_id, notes=notes):
                request = await self._bounded(
                    service, self._gateway.checkout(user_id, notes=notes),
                )
                return ExecutionResult(
                    text=(
                        f"Purchase request {request.request_number} created with "
                        f"{len(request.items)} item(s). Total: ${request.total:,.2f}."
                    ),
                    attachment=PurchaseRequestAttachment(purchase_request=request),
                )

            case _:
                assert_never(call)

    @staticmethod
    def _search_result(
        keyword: Optional[str], items: list[CatalogItem],
    ) -> ExecutionResult:
        if not items:
            if keyword:
                text = (
                    f'No items found matching "{keyword}". Try different '
                    "keywords or browse the full catalog."
                )
            else:
                text = "The catalog has no items yet."
            return ExecutionResult(text=text, attachment=ItemsAttachment(items=[]))

        shown = items[:MAX_ATTACHED_ITEMS]
        header = (
            f'Found {len(items)} item(s) matching "{keyword}":'
            if keyword
            else f"Here are {len(items)} item(s) from the catalog:"
        )
        text = f"{header}\n\n{_format_items(shown)}"
        if len(items) > MAX_ATTACHED_ITEMS:
            text += f"\n\n(Showing top {MAX_ATTACHED_ITEMS} results)"
        return ExecutionResult(text=text, attachment=ItemsAttachment(items=shown))
