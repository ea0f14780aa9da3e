"""Tool call models for the five agent capabilities.

A tool call is a discriminated union on ``tool``. Each variant validates
its own parameter bag, so a call that parses is complete and well-formed;
anything partial fails validation and the resolver asks the user for the
missing details instead of guessing.

User identity fields are never taken from model output. The orchestrator
binds them from the authenticated caller via ``bind_user``.
"""

import math
import re
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from procureflow.errors.domain import ValidationError

MAX_QUANTITY = 999
MAX_SEARCH_LIMIT = 50


class ToolName(str, Enum):
    """Names of the five agent capabilities."""

    search_catalog = "search_catalog"
    register_item = "register_item"
    add_to_cart = "add_to_cart"
    view_cart = "view_cart"
    checkout = "checkout"


MUTATING_TOOLS = frozenset({
    ToolName.register_item,
    ToolName.add_to_cart,
    ToolName.checkout,
})

# Fields that carry caller identity. Stripped from model output.
_IDENTITY_FIELDS = frozenset({"user_id", "created_by_user_id"})


class _ToolCallBase(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    @property
    def tool_name(self) -> ToolName:
        return ToolName(self.tool)  # type: ignore[attr-defined]

    @property
    def is_mutating(self) -> bool:
        return self.tool_name in MUTATING_TOOLS

    def describe(self) -> str:
        """One-sentence description of the action, used for confirmation."""
        raise NotImplementedError

    def bind_user(self, user_id: Optional[str]) -> "_ToolCallBase":
        """Return a copy with caller identity applied."""
        return self


class SearchCatalogCall(_ToolCallBase):
    """Read-only catalog keyword search."""

    tool: Literal["search_catalog"] = "search_catalog"
    keyword: Optional[str] = Field(default=None, max_length=200)
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_SEARCH_LIMIT)

    def describe(self) -> str:
        if self.keyword:
            return f'I\'ll search the catalog for "{self.keyword}".'
        return "I'll list items from the catalog."


class RegisterItemCall(_ToolCallBase):
    """Register a new catalog item (mutating)."""

    tool: Literal["register_item"] = "register_item"
    name: str = Field(..., min_length=2, max_length=200)
    category: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    estimated_price: float = Field(..., gt=0)
    created_by_user_id: Optional[str] = None

    @field_validator("estimated_price")
    @classmethod
    def _finite_price(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("estimated_price must be a finite number")
        return value

    def describe(self) -> str:
        return (
            f'I\'ll register "{self.name}" in the {self.category} category '
            f"at an estimated ${self.estimated_price:,.2f}."
        )

    def bind_user(self, user_id: Optional[str]) -> "RegisterItemCall":
        return self.model_copy(update={"created_by_user_id": user_id})


class AddToCartCall(_ToolCallBase):
    """Add a quantity of a catalog item to the user's cart (mutating)."""

    tool: Literal["add_to_cart"] = "add_to_cart"
    item_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY)
    item_name: Optional[str] = Field(default=None, max_length=200)
    user_id: Optional[str] = None

    def describe(self) -> str:
        label = self.item_name or f"item {self.item_id}"
        return f"I'll add {self.quantity} × {label} to your cart."

    def bind_user(self, user_id: Optional[str]) -> "AddToCartCall":
        return self.model_copy(update={"user_id": user_id})


class ViewCartCall(_ToolCallBase):
    """Read-only view of the user's cart."""

    tool: Literal["view_cart"] = "view_cart"
    user_id: Optional[str] = None

    def describe(self) -> str:
        return "I'll show your cart."

    def bind_user(self, user_id: Optional[str]) -> "ViewCartCall":
        return self.model_copy(update={"user_id": user_id})


class CheckoutCall(_ToolCallBase):
    """Check out the cart into a purchase request (mutating)."""

    tool: Literal["checkout"] = "checkout"
    notes: Optional[str] = Field(default=None, max_length=1000)
    user_id: Optional[str] = None

    def describe(self) -> str:
        text = "I'll check out your cart and submit a purchase request"
        if self.notes:
            return f'{text} with the note "{self.notes}".'
        return f"{text}."

    def bind_user(self, user_id: Optional[str]) -> "CheckoutCall":
        return self.model_copy(update={"user_id": user_id})


ToolCall = Annotated[
    Union[
        SearchCatalogCall,
        RegisterItemCall,
        AddToCartCall,
        ViewCartCall,
        CheckoutCall,
    ],
    Field(discriminator="tool"),
]

_TOOL_CALL_ADAPTER: TypeAdapter[ToolCall] = TypeAdapter(ToolCall)


class ProposedToolCall(BaseModel):
    """A parsed, not-yet-executed tool invocation.

    Attributes:
        call: The validated tool call.
        sequence: Sequence number of the user message the proposal answers.
            Strictly increasing within a conversation.
    """

    model_config = ConfigDict(frozen=True)

    call: ToolCall
    sequence: int = Field(..., ge=0)

    @property
    def is_mutating(self) -> bool:
        return self.call.is_mutating


def normalize_tool_name(raw: str) -> Optional[ToolName]:
    """Resolve 'SearchCatalog', 'search-catalog' or 'search_catalog'.

    Returns:
        The ToolName, or None when the name is not one of the five tools.
    """
    if not raw:
        return None
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", raw.strip()).lower()
    snake = snake.replace("-", "_").replace(" ", "_")
    snake = re.sub(r"_+", "_", snake)
    try:
        return ToolName(snake)
    except ValueError:
        return None


def parse_tool_call(tool: str, arguments: dict[str, Any] | None) -> ToolCall:
    """Validate a model-proposed tool call.

    Args:
        tool: Tool name as emitted by the model.
        arguments: Raw parameter bag as emitted by the model.

    Returns:
        The validated tool call variant.

    Raises:
        ValidationError: Unknown tool, or missing/invalid parameters.
    """
    name = normalize_tool_name(tool)
    if name is None:
        raise ValidationError(f"Unknown tool '{tool}'")
    if arguments is not None and not isinstance(arguments, dict):
        raise ValidationError("Tool arguments must be an object")

    payload = {
        k: v for k, v in (arguments or {}).items() if k not in _IDENTITY_FIELDS
    }
    payload["tool"] = name.value
    try:
        return _TOOL_CALL_ADAPTER.validate_python(payload)
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"][1:]) or "arguments"
            problems.append(f"{loc}: {err['msg']}")
        raise ValidationError("; ".join(problems)) from e
