"""
Session validation against the external identity provider.

Validates session tokens from the Authorization header via the auth
service API and turns them into an Identity. This service never issues
or verifies credentials itself.
"""

from typing import Optional

from fastapi import Depends, Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from config import settings
from schemas.identity import Identity
import httpx
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer security schemes
security = HTTPBearer(auto_error=False)


async def validate_session(session_token: str, client: Optional[httpx.AsyncClient] = None) -> Identity:
    """
    Validate a session token via the identity provider and extract the caller.

    Args:
        session_token: Session token from Authorization header
        client: Optional HTTP client (a fresh one is opened otherwise)

    Returns:
        Identity: id and display name of the session's user

    Raises:
        HTTPException: 401 if the session is invalid or expired,
            503 if the identity provider is unreachable
    """
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient()

    try:
        response = await client.get(
            f"{settings.auth_service_url}/api/auth/get-session",
            headers={"Authorization": f"Bearer {session_token}"},
            timeout=settings.auth_timeout_seconds,
            follow_redirects=True,
        )

        if response.status_code != 200:
            logger.warning(f"Session validation failed: {response.status_code}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired session token",
            )

        session_data = response.json()

        user = session_data.get("user") if isinstance(session_data, dict) else None
        if not user or not user.get("id"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid session data",
            )

        identity = Identity(
            id=str(user["id"]),
            display_name=user.get("username") or user.get("name") or "Anonymous",
        )
        logger.info(f"Session validated for user_id: {identity.id}")
        return identity

    except HTTPException:
        raise
    except httpx.TimeoutException:
        logger.error("Identity provider timeout")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        )
    except httpx.HTTPError as e:
        logger.error(f"Identity provider unreachable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        )
    finally:
        if owns_client:
            await client.aclose()


async def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    FastAPI dependency for endpoints that need an authenticated caller.

    Raises:
        HTTPException: 401 without a bearer token or with an invalid one
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity = await validate_session(credentials.credentials)

    # Attach user_id to request state for downstream use (rate limiting, logs)
    request.state.user_id = identity.id
    request.state.is_authenticated = True
    return identity


async def optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """
    FastAPI dependency for endpoints open to anonymous readers.

    Invalid tokens are logged and treated as anonymous.

    Returns:
        Identity or None for anonymous callers
    """
    request.state.is_authenticated = False
    if credentials is None:
        return None

    try:
        identity = await validate_session(credentials.credentials)
    except HTTPException as e:
        logger.warning(f"Optional auth failed, continuing anonymously: {e.detail}")
        return None

    request.state.user_id = identity.id
    request.state.is_authenticated = True
    return identity
