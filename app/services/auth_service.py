# app/services/auth_service.py
"""
Caller identity for status changes.

Bearer tokens are issued by the hosted auth service; we only ask it who the
token belongs to (GET {AUTH_URL}/auth/v1/user). Any failure means the caller
is not authenticated and the request is rejected before touching the store.
"""

from dataclasses import dataclass
from typing import Optional
import httpx
from fastapi import Header, HTTPException, status
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AuthenticatedUser:
    id: str
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def resolve_user(authorization: Optional[str],
                       client: Optional[httpx.AsyncClient] = None) -> AuthenticatedUser:
    """Resolve an Authorization header to a user. Raises HTTPException(401)."""
    if not authorization:
        raise _unauthorized("No authorization header")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise _unauthorized("Empty bearer token")
    if not settings.AUTH_URL:
        logger.error("AUTH_URL is not configured, rejecting authenticated request")
        raise _unauthorized("Authentication backend not configured")

    url = f"{settings.AUTH_URL.rstrip('/')}/auth/v1/user"
    headers = {"Authorization": f"Bearer {token}"}
    if settings.AUTH_API_KEY:
        headers["apikey"] = settings.AUTH_API_KEY

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=10) as own:
                response = await own.get(url, headers=headers)
        else:
            response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning(f"Auth service unreachable: {e}")
        raise _unauthorized("Unauthorized")

    if response.status_code != 200:
        raise _unauthorized("Unauthorized")
    try:
        body = response.json()
    except ValueError:
        raise _unauthorized("Unauthorized")
    if not isinstance(body, dict) or not body.get("id"):
        raise _unauthorized("Unauthorized")
    return AuthenticatedUser(id=str(body["id"]), email=body.get("email"))


async def require_user(authorization: Optional[str] = Header(None)) -> AuthenticatedUser:
    """FastAPI dependency for routes that need a caller identity."""
    return await resolve_user(authorization)
