"""ProcureFlow conversational procurement agent.

Turns free-text chat messages into replies, clarifying questions, or
confirmed catalog/cart/checkout actions, persisting every turn.
"""

__version__ = "1.0.0"
