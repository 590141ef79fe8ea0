"""
Access-token authentication.

Couples sign in through Supabase Auth; the browser then carries an HS256
access token either as ``Authorization: Bearer <token>`` (API calls) or in the
auth cookie (page loads). The token's ``sub`` claim is the customer id used
for wedding ownership checks.

Usage:
    from wedsite.auth import get_current_user

    @router.get("/protected")
    async def protected_route(user_id: str = Depends(get_current_user)):
        return {"user": user_id}
"""

import logging
from typing import Optional

import jwt
from fastapi import HTTPException, Request, status

from .core.config import get_settings

logger = logging.getLogger(__name__)


def extract_access_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie."""
    authorization = request.headers.get("Authorization", "")
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
        logger.warning(f"Ignoring malformed Authorization header: {authorization[:20]}...")

    return request.cookies.get(get_settings().auth_cookie_name) or None


def verify_access_token(
    token: str,
    secret: Optional[str] = None,
    audience: Optional[str] = None,
) -> dict:
    """
    Verify an access token and return its claims.

    Args:
        token: Encoded JWT
        secret: HS256 signing secret (defaults to SUPABASE_JWT_SECRET)
        audience: Expected ``aud`` claim (defaults to AUTH_JWT_AUDIENCE)

    Raises:
        HTTPException 401: Token expired, invalid, or auth not configured
    """
    settings = get_settings()
    secret = secret if secret is not None else settings.supabase_jwt_secret
    audience = audience if audience is not None else settings.auth_jwt_audience

    if not secret:
        logger.error("SUPABASE_JWT_SECRET is not configured; rejecting access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication is not configured",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=audience,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.warning("Token verification failed: Token has expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def get_request_user_id(request: Request) -> Optional[str]:
    """
    Authenticated user id for the request, or None.

    Never raises; the tenant middleware uses it to choose between serving an
    admin page and redirecting to sign-in.
    """
    token = extract_access_token(request)
    if not token:
        return None
    try:
        claims = verify_access_token(token)
    except HTTPException:
        return None
    return claims.get("sub") or None


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency: the authenticated user id.

    Raises:
        HTTPException 401: No token, or the token is invalid
    """
    token = extract_access_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please sign in.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = verify_access_token(token)
    user_id = claims.get("sub")
    if not user_id:
        logger.error("Token verified but missing 'sub' claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID claim",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated user: {user_id}")
    return user_id


async def get_optional_user(request: Request) -> Optional[str]:
    """Like ``get_current_user`` but returns None instead of raising."""
    return get_request_user_id(request)
