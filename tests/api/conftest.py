"""Fixtures for API route tests.

Each test gets its own app instance over a temporary database, the
scripted completion provider and the in-memory domain services.
"""

import pytest
from fastapi.testclient import TestClient

from procureflow.api.main import create_app


@pytest.fixture
def client(settings, provider, catalog, cart_service, checkout_service):
    """TestClient with the lifespan running."""
    app = create_app(
        settings=settings,
        completion_provider=provider,
        catalog=catalog,
        cart=cart_service,
        checkout=checkout_service,
    )
    with TestClient(app) as test_client:
        yield test_client
