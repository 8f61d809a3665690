import os
from unittest.mock import MagicMock

import pytest

# Settings are read when apps.api.main is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from apps.api.core.auth import get_current_user_id, get_repository  # noqa: E402
from apps.api.core.config import Settings, get_settings  # noqa: E402
from packages.statement_import.repository import StatementRepository  # noqa: E402


@pytest.fixture
def test_settings():
    return Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_ANON_KEY="test-anon-key",
        MAX_UPLOAD_BYTES=64 * 1024,
    )


@pytest.fixture
def mock_repository():
    repository = MagicMock(spec=StatementRepository)
    repository.list_merchant_mappings.return_value = []
    repository.existing_fingerprints.return_value = set()
    repository.insert_transaction.side_effect = lambda user_id, row: {"id": "row", **row}
    return repository


@pytest.fixture
def api_client(mock_repository, test_settings):
    """TestClient on the real app with auth and storage overridden."""
    from fastapi.testclient import TestClient

    from apps.api.main import app

    app.dependency_overrides[get_current_user_id] = lambda: "test-user-id"
    app.dependency_overrides[get_repository] = lambda: mock_repository
    app.dependency_overrides[get_settings] = lambda: test_settings
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()
