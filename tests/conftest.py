import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

# Make the src/ layout importable without installing the package
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from tasks_extended.auth.authorizer import Authorizer
from tasks_extended.auth.credentials import Credential
from tasks_extended.auth.session import SessionManager
from tasks_extended.auth.store import MemoryCredentialStore
from tasks_extended.tasks.source import RemoteTaskSource


FIXED_NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


# Task fixtures
@pytest.fixture
def sample_task_response():
    """Sample Google Tasks API task response."""
    return {
        "id": "task_123",
        "title": "Sample Task",
        "notes": "This is a sample task for testing",
        "status": "needsAction",
        "due": "2025-01-20T00:00:00.000Z",
        "updated": "2025-01-15T10:00:00.000Z",
        "position": "00000000000000000001",
    }


@pytest.fixture
def sample_task_items():
    """A parent with two children listed out of order, plus a second root."""
    return [
        {"id": "1", "title": "Groceries", "position": "00000000000000000001", "status": "needsAction"},
        {"id": "2", "title": "Milk", "parent": "1", "position": "00000000000000000002"},
        {"id": "3", "title": "Bread", "parent": "1", "position": "00000000000000000001"},
        {"id": "4", "title": "Taxes", "position": "00000000000000000000", "status": "completed"},
    ]


# Credential fixtures
@pytest.fixture
def credential():
    """Valid credential expiring in an hour."""
    return Credential(
        access_token="ya29.access-token-one",
        refresh_token="1//refresh-token",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=("https://www.googleapis.com/auth/tasks",),
    )


@pytest.fixture
def renewed_credential():
    """Credential returned by a silent renewal."""
    return Credential(
        access_token="ya29.access-token-two",
        refresh_token="1//refresh-token",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def expired_credential():
    """Credential whose access token expired a minute ago."""
    return Credential(
        access_token="ya29.expired-token",
        refresh_token="1//refresh-token",
        expiry=datetime.now(timezone.utc) - timedelta(minutes=1),
    )


@pytest.fixture
def memory_store():
    return MemoryCredentialStore()


@pytest.fixture
def mock_authorizer():
    """Authorizer whose coroutines are AsyncMocks."""
    return AsyncMock(spec=Authorizer)


@pytest.fixture
def session_manager(memory_store, mock_authorizer):
    return SessionManager(memory_store, mock_authorizer)


@pytest.fixture
def static_credentials():
    """Credential provider with a fixed token and no renewal."""
    return SimpleNamespace(access_token="ya29.static-token")


@pytest.fixture
def mock_source():
    """Remote task source returning no tasks."""
    source = AsyncMock(spec=RemoteTaskSource)
    source.list.return_value = []
    return source


# aiogoogle fixtures
@pytest.fixture
def mock_async_tasks_context():
    """Mock async tasks service context with aiogoogle and service."""
    mock_aiogoogle = AsyncMock()
    mock_tasks_service = Mock()
    return mock_aiogoogle, mock_tasks_service


@pytest.fixture
def mock_get_async_tasks_service(mock_async_tasks_context):
    """Mock the async tasks service context manager."""
    with patch('tasks_extended.tasks.source.async_tasks_service') as mock_context:
        mock_context.return_value.__aenter__.return_value = mock_async_tasks_context
        mock_context.return_value.__aexit__.return_value = None
        yield mock_context
