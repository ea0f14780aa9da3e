"""Tests for confirmation reply classification."""

import pytest

from procureflow.orchestrator.agent.intent_detection import (
    ConfirmationReply,
    classify_confirmation,
    is_confirmation_response,
)


@pytest.mark.parametrize(
    "message",
    [
        "yes",
        "Yes",
        "YES!",
        "yes, please",
        "ok",
        "Okay.",
        "confirm",
        "proceed",
        "go ahead",
        "Sure, thanks",
        "confirm checkout",
        "do it",
        "  y  ",
        "that’s right",
    ],
)
def test_affirmative_replies(message):
    assert classify_confirmation(message) is ConfirmationReply.affirm
    assert is_confirmation_response(message) is True


@pytest.mark.parametrize(
    "message",
    ["no", "No.", "nope", "cancel", "stop", "never mind", "no thanks", "Don't"],
)
def test_negative_replies(message):
    assert classify_confirmation(message) is ConfirmationReply.deny
    assert is_confirmation_response(message) is False


@pytest.mark.parametrize(
    "message",
    [
        "actually, make it 5",
        "yes but make it 20",
        "what is in my cart?",
        "search for staplers",
        "",
        None,
    ],
)
def test_anything_else_is_unrelated(message):
    assert classify_confirmation(message) is ConfirmationReply.unrelated
    assert is_confirmation_response(message) is False
