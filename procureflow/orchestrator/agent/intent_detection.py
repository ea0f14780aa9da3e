"""Deterministic heuristics for replies to a pending confirmation.

The gate never asks the model whether the user said yes. Short replies
are normalized and matched against fixed allow-lists; anything that is
not clearly affirmative is treated as a cancellation.
"""

import re
from enum import Enum

_AFFIRMATIVE = frozenset({
    "yes",
    "y",
    "yeah",
    "yep",
    "yup",
    "sure",
    "ok",
    "okay",
    "k",
    "confirm",
    "confirmed",
    "proceed",
    "continue",
    "go ahead",
    "go for it",
    "do it",
    "yes do it",
    "yes go ahead",
    "yes confirm",
    "yes proceed",
    "sounds good",
    "looks good",
    "correct",
    "absolutely",
    "affirmative",
    "confirm checkout",
    "yes checkout",
    "yes add it",
    "add it",
    "submit",
    "submit it",
    "that's right",
    "thats right",
})

_NEGATIVE = frozenset({
    "no",
    "n",
    "nope",
    "nah",
    "cancel",
    "cancel it",
    "stop",
    "abort",
    "don't",
    "dont",
    "do not",
    "no thanks",
    "no thank you",
    "never mind",
    "nevermind",
    "not now",
    "forget it",
    "no don't",
    "no dont",
})

_POLITENESS = re.compile(r"\b(please|pls|thanks|thank you)\b")
_PUNCTUATION = re.compile(r"[^\w\s']")


class ConfirmationReply(str, Enum):
    """Classification of a user reply to a pending confirmation."""

    affirm = "affirm"
    deny = "deny"
    unrelated = "unrelated"


def _normalize(message: str) -> str:
    text = message.strip().lower().replace("’", "'")
    text = _PUNCTUATION.sub(" ", text)
    text = _POLITENESS.sub(" ", text)
    return " ".join(text.split())


def classify_confirmation(message: str | None) -> ConfirmationReply:
    """Classify a reply to a pending action.

    Args:
        message: Raw user message text.

    Returns:
        ``affirm`` only for an exact allow-list match after normalization,
        ``deny`` for an explicit refusal, otherwise ``unrelated``.
    """
    if not message:
        return ConfirmationReply.unrelated
    text = _normalize(message)
    if text in _AFFIRMATIVE:
        return ConfirmationReply.affirm
    if text in _NEGATIVE:
        return ConfirmationReply.deny
    return ConfirmationReply.unrelated


def is_confirmation_response(message: str | None) -> bool:
    """True for short confirmation replies (yes/proceed/confirm)."""
    return classify_confirmation(message) is ConfirmationReply.affirm
