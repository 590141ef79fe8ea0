"""
Tenant middleware.

Runs the resolver once per request, publishes the wedding id to handlers
(``request.state``) and to the client (``x-wedding-id`` header and
``wedding_id`` cookie), and guards ``/admin`` pages behind wedding ownership.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable, Optional
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from ..auth import get_request_user_id
from .config import (
    ADMIN_PATH_PREFIX,
    PATHNAME_HEADER,
    SIGN_IN_PATH,
    WEDDING_ID_COOKIE,
    WEDDING_ID_HEADER,
    ResolverConfig,
)
from .hostnames import path_has_prefix
from .queries import WeddingLookup, open_wedding_lookup
from .resolver import ResolutionRequest, TenantResolver, WeddingResolution


logger = logging.getLogger(__name__)

LookupFactory = Callable[[], AbstractAsyncContextManager]
Authenticator = Callable[[Request], Optional[str]]


def sign_in_redirect_url(next_path: str, error: Optional[str] = None) -> str:
    """``/auth/sign-in?[error=...&]next=<path>``."""
    params = {}
    if error:
        params["error"] = error
    params["next"] = next_path
    return f"{SIGN_IN_PATH}?{urlencode(params, safe='/')}"


class WeddingTenantMiddleware(BaseHTTPMiddleware):
    """
    Resolve the wedding for every request.

    Args:
        app: Downstream ASGI app
        config: Resolver configuration built at startup
        lookup_factory: Returns an async context manager yielding a
            ``WeddingLookup``; defaults to a session from the app pool
        authenticate: Maps a request to a user id or None
        resolver: Override the resolver (defaults to ``TenantResolver(config)``)
    """

    def __init__(
        self,
        app: ASGIApp,
        config: ResolverConfig,
        lookup_factory: LookupFactory = open_wedding_lookup,
        authenticate: Authenticator = get_request_user_id,
        resolver: Optional[TenantResolver] = None,
    ):
        super().__init__(app)
        self.config = config
        self.lookup_factory = lookup_factory
        self.authenticate = authenticate
        self.resolver = resolver or TenantResolver(config)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        async with self.lookup_factory() as lookup:
            resolution = await self.resolver.resolve_detailed(
                ResolutionRequest.from_request(request), lookup
            )
            request.state.wedding_resolution = resolution
            request.state.wedding_id = resolution.wedding_id if resolution else None

            denied = None
            if path_has_prefix(path, ADMIN_PATH_PREFIX):
                denied = await self.check_admin_access(request, resolution, lookup)

        response = denied or await call_next(request)
        response.headers[PATHNAME_HEADER] = path
        if resolution:
            self.attach_wedding(response, resolution.wedding_id)
        return response

    async def check_admin_access(
        self,
        request: Request,
        resolution: Optional[WeddingResolution],
        lookup: WeddingLookup,
    ) -> Optional[Response]:
        """Redirect response when the user may not use this admin page, else None."""
        path = request.url.path

        user_id = self.authenticate(request)
        if not user_id:
            logger.info(f"Unauthenticated admin request to {path}; redirecting to sign-in")
            return RedirectResponse(sign_in_redirect_url(path))

        if resolution is None:
            logger.warning(f"Admin request to {path} by {user_id} with no resolved wedding")
            return RedirectResponse(sign_in_redirect_url(path, error="access_denied"))

        try:
            is_owner = await lookup.is_owner(resolution.wedding_id, user_id)
        except Exception:
            logger.exception(
                f"Error verifying ownership of wedding {resolution.wedding_id} for {user_id}"
            )
            is_owner = False

        if not is_owner:
            logger.warning(
                f"User {user_id} denied admin access to wedding {resolution.wedding_id}"
            )
            return RedirectResponse(sign_in_redirect_url(path, error="access_denied"))
        return None

    def attach_wedding(self, response: Response, wedding_id: str) -> None:
        response.headers[WEDDING_ID_HEADER] = wedding_id
        response.set_cookie(
            WEDDING_ID_COOKIE,
            wedding_id,
            max_age=self.config.cookie_max_age_seconds,
            path="/",
            secure=self.config.is_production,
            httponly=False,  # Read by client-side code
            samesite="lax",
        )
