"""Tests for the bearer token and user resolution dependencies."""

import asyncio
from unittest.mock import MagicMock

import pytest

from apps.api.core.auth import get_current_user_id, get_repository, get_user_token
from apps.api.core.errors import AuthenticationError
from packages.statement_import.repository import SupabaseStatementRepository


class TestGetUserToken:
    """Authorization header must be 'Bearer <token>'."""

    def test_extracts_token(self):
        assert asyncio.run(get_user_token("Bearer abc.def")) == "abc.def"

    @pytest.mark.parametrize("header", ["", "Basic abc", "Bearer   "])
    def test_rejects_missing_or_malformed(self, header):
        with pytest.raises(AuthenticationError):
            asyncio.run(get_user_token(header))


class TestGetCurrentUserId:
    """The token must resolve to a Supabase user."""

    def test_returns_user_id(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=MagicMock(id="user-42"))
        assert asyncio.run(get_current_user_id(client)) == "user-42"

    def test_no_user_is_401(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=None)
        with pytest.raises(AuthenticationError):
            asyncio.run(get_current_user_id(client))


def test_repository_wraps_user_client():
    client = MagicMock()
    repository = asyncio.run(get_repository(client))
    assert isinstance(repository, SupabaseStatementRepository)
    assert repository.client is client
