"""
Request-side wedding helpers for API routes.

The middleware has already resolved the wedding by the time a route runs;
these helpers read that result (or what the client echoed back) and turn it
into FastAPI dependencies.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import get_current_user
from ..core.config import get_settings
from ..core.db import get_session
from .config import WEDDING_ID_COOKIE, WEDDING_ID_HEADER, ResolverConfig
from .queries import verify_wedding_ownership


logger = logging.getLogger(__name__)

WEDDING_ID_PUBLIC_QUERY_PARAM = "wedding_id"


@dataclass(frozen=True)
class WeddingAccess:
    """An authenticated user acting on a wedding they own."""

    wedding_id: str
    user_id: str


def _resolver_config(request: Request) -> ResolverConfig:
    config = getattr(request.app.state, "resolver_config", None)
    return config or ResolverConfig.from_settings(get_settings())


def get_wedding_id_from_request(request: Request) -> Optional[str]:
    """
    Wedding id for an API request.

    Tries, in order:
    1. Self-hosted default wedding
    2. ``request.state.wedding_id`` (set by the tenant middleware)
    3. ``x-wedding-id`` header
    4. ``wedding_id`` cookie
    5. ``wedding_id`` query parameter (public routes)
    """
    config = _resolver_config(request)
    if config.is_self_hosted and config.default_wedding_id:
        return config.default_wedding_id

    state_wedding_id = getattr(request.state, "wedding_id", None)
    if state_wedding_id:
        return state_wedding_id

    return (
        request.headers.get(WEDDING_ID_HEADER)
        or request.cookies.get(WEDDING_ID_COOKIE)
        or request.query_params.get(WEDDING_ID_PUBLIC_QUERY_PARAM)
        or None
    )


async def require_wedding_id(request: Request) -> str:
    """
    FastAPI dependency: the request's wedding id.

    Raises:
        HTTPException 400: No wedding could be determined
    """
    wedding_id = get_wedding_id_from_request(request)
    if not wedding_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Wedding ID is required",
        )
    return wedding_id


async def require_wedding_owner(
    wedding_id: str = Depends(require_wedding_id),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> WeddingAccess:
    """
    FastAPI dependency: the authenticated user must own the request's wedding.

    Raises:
        HTTPException 401: Not signed in
        HTTPException 403: Signed in but not an owner
    """
    if not await verify_wedding_ownership(session, user_id, wedding_id):
        logger.warning(f"User {user_id} attempted to manage wedding {wedding_id} without ownership")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: You do not have permission to access this wedding",
        )
    return WeddingAccess(wedding_id=wedding_id, user_id=user_id)
