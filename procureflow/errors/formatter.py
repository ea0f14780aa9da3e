"""Error formatting for user display.

Turns domain exceptions into plain-language text backed by the error
registry, so raw exception objects and stack traces never reach a user.
"""

from dataclasses import dataclass

from procureflow.errors.domain import (
    AuthenticationRequiredError,
    ConversationNotFoundError,
    DomainError,
    DuplicateSuspectedError,
    EmptyCartError,
    EmptyMessageError,
    ItemNotFoundError,
    ProviderUnavailableError,
    ValidationError,
)
from procureflow.errors.registry import get_error

UNKNOWN_ERROR_CODE = "E-4001"


@dataclass
class FormattedError:
    """A registry-backed, user-facing error description.

    Attributes:
        code: Error code in E-XXXX format.
        title: Short title for display.
        message: Message with context substituted.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    title: str
    message: str
    remediation: str
    is_retryable: bool = False

    def render(self) -> str:
        """Return message and remediation as one reply sentence pair."""
        return f"{self.message} {self.remediation}"


def format_error(code: str, **context: object) -> FormattedError:
    """Create a formatted error from a registry code.

    Args:
        code: Error code in E-XXXX format.
        **context: Values for message template substitution.

    Returns:
        FormattedError; unknown codes fall back to the generic system error.
    """
    error_def = get_error(code) or get_error(UNKNOWN_ERROR_CODE)
    assert error_def is not None

    message = error_def.message_template
    try:
        message = message.format(**context)
    except KeyError:
        # Keep template if some placeholders are missing
        pass

    return FormattedError(
        code=error_def.code,
        title=error_def.title,
        message=message,
        remediation=error_def.remediation,
        is_retryable=error_def.is_retryable,
    )


def _duplicate_matches(exc: DuplicateSuspectedError) -> str:
    names = [getattr(d, "name", None) for d in exc.duplicates]
    names = [n for n in names if n]
    if not names:
        return ""
    return ": " + ", ".join(f'"{n}"' for n in names[:3])


def describe_exception(exc: BaseException) -> FormattedError:
    """Map an exception from the taxonomy to its user-facing description.

    Args:
        exc: Any exception; non-domain exceptions map to E-4001.

    Returns:
        FormattedError for display.
    """
    if isinstance(exc, EmptyMessageError):
        return format_error(exc.code)
    if isinstance(exc, AuthenticationRequiredError):
        return format_error(exc.code, operation=exc.operation)
    if isinstance(exc, ValidationError):
        return format_error(exc.code, detail=exc.message)
    if isinstance(exc, ItemNotFoundError):
        return format_error(exc.code, item_id=exc.item_id)
    if isinstance(exc, ConversationNotFoundError):
        return format_error(exc.code, conversation_id=exc.conversation_id)
    if isinstance(exc, EmptyCartError):
        return format_error(exc.code)
    if isinstance(exc, DuplicateSuspectedError):
        return format_error(exc.code, matches=_duplicate_matches(exc))
    if isinstance(exc, ProviderUnavailableError):
        return format_error(exc.code, service=exc.service)
    if isinstance(exc, DomainError):
        return format_error(exc.code)
    return format_error(UNKNOWN_ERROR_CODE)
