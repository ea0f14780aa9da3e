"""Test helpers for ProcureFlow tests."""

from tests.helpers.scripted_provider import (
    ScriptedProvider,
    clarify_json,
    reply_json,
    tool_call_json,
)

__all__ = [
    "ScriptedProvider",
    "clarify_json",
    "reply_json",
    "tool_call_json",
]
