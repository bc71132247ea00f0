"""Optional bearer-token authentication backed by Supabase Auth"""
import asyncio
import logging
from typing import Optional
from fastapi import Request

from ..config import settings
from ..errors import AuthenticationError
from ..utils.database import SupabaseClient

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"


def bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        return token or None
    return None


def _lookup_user_id(token: str) -> Optional[str]:
    response = SupabaseClient.get_client().auth.get_user(token)
    user = getattr(response, "user", None)
    return getattr(user, "id", None)


async def resolve_user_id(token: Optional[str]) -> Optional[str]:
    """
    Resolve a Supabase access token to a user id

    Returns:
        The user id, or None when the token is missing, invalid or cannot be checked
    """
    if not token:
        return None
    try:
        return await asyncio.to_thread(_lookup_user_id, token)
    except Exception as e:
        logger.warning(f"Token lookup failed: {type(e).__name__}: {e}")
        return None


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency returning the caller's user id, or "anonymous"

    Raises:
        AuthenticationError: When REQUIRE_AUTH is set and no valid token was sent
    """
    user_id = await resolve_user_id(bearer_token(request))
    if user_id:
        return user_id
    if settings.require_auth:
        raise AuthenticationError("Missing or invalid authentication token")
    return ANONYMOUS
