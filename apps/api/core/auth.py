"""Centralized authentication dependencies.

Each request carries the user's Supabase JWT. The gateway builds a
user-scoped client from it so Row-Level Security applies to every query,
and resolves the user id once per request.
"""

from fastapi import Depends, Header
from supabase import Client, create_client

from apps.api.core.config import Settings, get_settings
from apps.api.core.errors import AuthenticationError
from packages.statement_import.repository import (
    StatementRepository,
    SupabaseStatementRepository,
)


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract Bearer token from Authorization header.

    Returns the raw JWT string.
    """
    if not authorization.startswith("Bearer "):
        raise AuthenticationError(
            "Unauthorized",
            details="Missing or invalid Authorization header. Expected: Bearer <token>",
        )

    token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Unauthorized", details="Missing bearer token")
    return token


async def get_user_client(
    token: str = Depends(get_user_token),
    settings: Settings = Depends(get_settings),
) -> Client:
    """Provide a Supabase client authenticated with the user's JWT.

    Note: We pass an empty string as the refresh token because the API
    gateway is stateless: each request carries a fresh token from the
    client. The backend never refreshes tokens.
    """
    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
    client.auth.set_session(token, "")
    return client


async def get_current_user_id(client: Client = Depends(get_user_client)) -> str:
    """Resolve the caller's user id; 401 when the token maps to no user."""
    user_response = client.auth.get_user()
    if not user_response or not user_response.user:
        raise AuthenticationError("Unauthorized", details="Invalid bearer token")
    return user_response.user.id


async def get_repository(
    client: Client = Depends(get_user_client),
) -> StatementRepository:
    return SupabaseStatementRepository(client)
