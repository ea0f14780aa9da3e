"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from procureflow.api.routes import agent

__all__ = [
    "agent",
]
