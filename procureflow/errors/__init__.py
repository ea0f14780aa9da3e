"""Error handling framework for ProcureFlow.

This package provides:
- Typed domain exceptions forming the agent error taxonomy
- Error code registry with E-XXXX format codes
- Formatting of exceptions into plain-language replies

Error categories:
- E-1xxx: Validation errors
- E-2xxx: Catalog, cart and conversation errors
- E-3xxx: Completion provider / service availability errors
- E-4xxx: System/internal errors
- E-5xxx: Authentication errors
"""

from procureflow.errors.domain import (
    AuthenticationRequiredError,
    ConversationNotFoundError,
    DomainError,
    DuplicateSuspectedError,
    EmptyCartError,
    EmptyMessageError,
    ItemNotFoundError,
    NotFoundError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ValidationError,
)
from procureflow.errors.formatter import (
    FormattedError,
    describe_exception,
    format_error,
)
from procureflow.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Domain exceptions
    "DomainError",
    "ValidationError",
    "EmptyMessageError",
    "AuthenticationRequiredError",
    "NotFoundError",
    "ConversationNotFoundError",
    "ItemNotFoundError",
    "EmptyCartError",
    "DuplicateSuspectedError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Formatter
    "FormattedError",
    "format_error",
    "describe_exception",
]
