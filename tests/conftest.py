"""
Pytest fixtures for quote backend tests.
"""
import pytest
from typing import AsyncGenerator, Generator

from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

# Import the app
import sys
import os

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.main import app
from app.services.quote_session_service import quote_session_store


# ============ Fixtures ============


@pytest.fixture(autouse=True)
def clear_quote_sessions():
    """Every test starts and ends with an empty session store."""
    quote_session_store._sessions.clear()
    yield
    quote_session_store._sessions.clear()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a synchronous test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def quote_session_id(client: TestClient) -> str:
    """A freshly created, empty quote session."""
    response = client.post("/api/v1/quotes")
    assert response.status_code == 201
    return response.json()["sessionId"]


# ============ Testkit Fixtures ============


@pytest.fixture
def export_factory():
    """Workflow export factory for generating test data."""
    from tests.testkit import WorkflowExportFactory
    return WorkflowExportFactory
