"""
Shared fixtures for route tests.
"""

import pytest

from app import create_app
from config import TestingConfig


@pytest.fixture(params=["store", "sql"])
def app(request):
    """Create a Flask app with in-memory order storage and no latency."""
    config = type("BackendTestingConfig", (TestingConfig,), {"ORDER_BACKEND": request.param})
    return create_app(config)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def patient_client(client):
    """Test client with a signed-in patient."""
    with client.session_transaction() as sess:
        sess["isAuthenticated"] = True
        sess["userEmail"] = "patient@example.com"
    return client


@pytest.fixture
def admin_client(app):
    """Separate test client with a signed-in admin."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["isAdminAuthenticated"] = True
        sess["adminEmail"] = "admin@moca.com"
    return client
