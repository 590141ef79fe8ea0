"""
Tenant (wedding) resolution.

Decides which wedding an inbound request belongs to. Strategies run in a fixed
order and the first one that yields a wedding wins:

    0. Tenant-less paths (assets, health, storefront, dashboard, onboarding,
       auth) skip resolution altogether
    1. Local-testing query override (?weddingId= / ?subdomain=), SaaS only
    2. Self-hosted default wedding
    3. SaaS domain resolution: verified custom domain, then subdomain, then
       /w/<slug> path

Datastore-backed work is bounded by ``ResolverConfig.timeout_seconds``. A
timeout or a datastore error is logged and treated as "no wedding": a lookup
hiccup must never fail marketing or auth traffic sharing the pipeline.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Mapping, Optional, Protocol, Sequence

from starlette.requests import Request

from .config import (
    SUBDOMAIN_QUERY_PARAM,
    WEDDING_ID_QUERY_PARAM,
    ResolverConfig,
)
from .hostnames import (
    domain_candidates,
    extract_slug_from_path,
    extract_subdomain,
    is_tenantless_path,
    strip_port,
)
from .queries import parse_uuid


logger = logging.getLogger(__name__)


class ResolutionSource(str, Enum):
    """How the wedding was determined."""

    QUERY_WEDDING_ID = "query_wedding_id"        # ?weddingId= (local testing)
    QUERY_SUBDOMAIN = "query_subdomain"          # ?subdomain= (local testing)
    SELF_HOSTED_DEFAULT = "self_hosted_default"  # DEFAULT_WEDDING_ID
    CUSTOM_DOMAIN = "custom_domain"              # Verified wedding_domains row
    SUBDOMAIN = "subdomain"                      # couple.platform.com
    PATH_SLUG = "path_slug"                      # /w/<slug>


@dataclass(frozen=True)
class WeddingResolution:
    wedding_id: str
    source: ResolutionSource


@dataclass(frozen=True)
class ResolutionRequest:
    """The parts of an HTTP request that resolution looks at."""

    hostname: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request) -> "ResolutionRequest":
        host = request.headers.get("host") or request.url.netloc or ""
        return cls(
            hostname=host,
            path=request.url.path,
            query=dict(request.query_params),
        )


class WeddingLookupProtocol(Protocol):
    async def find_verified_domain(self, candidates: Sequence[str]) -> Optional[str]: ...

    async def find_by_subdomain(self, subdomain: str) -> Optional[str]: ...

    async def find_by_slug(self, slug: str) -> Optional[str]: ...


Strategy = Callable[
    [ResolutionRequest, WeddingLookupProtocol],
    Awaitable[Optional[WeddingResolution]],
]


class TenantResolver:
    """
    Ordered, first-match-wins wedding resolution.

    Usage:
        resolver = TenantResolver(ResolverConfig.from_settings(get_settings()))
        async with open_wedding_lookup() as lookup:
            wedding_id = await resolver.resolve(request, lookup)
    """

    def __init__(self, config: ResolverConfig):
        self.config = config
        self.strategies: List[Strategy] = [
            self.local_testing_override,
            self.self_hosted_default,
            self.saas_domain,
        ]

    async def resolve(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[str]:
        resolution = await self.resolve_detailed(request, lookup)
        return resolution.wedding_id if resolution else None

    async def resolve_detailed(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[WeddingResolution]:
        if is_tenantless_path(request.path):
            return None

        for strategy in self.strategies:
            resolution = await strategy(request, lookup)
            if resolution:
                logger.debug(
                    f"Resolved wedding {resolution.wedding_id} via {resolution.source.value} "
                    f"(host={request.hostname!r}, path={request.path!r})"
                )
                return resolution
        return None

    # ────────────────────────────────────────────────────────────
    # Strategies
    # ────────────────────────────────────────────────────────────

    async def local_testing_override(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[WeddingResolution]:
        if not (self.config.local_testing_enabled and self.config.is_saas):
            return None

        raw_wedding_id = (request.query.get(WEDDING_ID_QUERY_PARAM) or "").strip()
        if raw_wedding_id:
            parsed = parse_uuid(raw_wedding_id)
            if parsed is not None:
                return WeddingResolution(str(parsed), ResolutionSource.QUERY_WEDDING_ID)
            logger.debug(f"Ignoring malformed {WEDDING_ID_QUERY_PARAM} override {raw_wedding_id!r}")

        subdomain = (request.query.get(SUBDOMAIN_QUERY_PARAM) or "").strip().lower()
        if subdomain:
            wedding_id = await self._bounded(
                lookup.find_by_subdomain(subdomain),
                f"subdomain override {subdomain!r}",
            )
            if wedding_id:
                return WeddingResolution(wedding_id, ResolutionSource.QUERY_SUBDOMAIN)
        return None

    async def self_hosted_default(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[WeddingResolution]:
        if self.config.is_self_hosted and self.config.default_wedding_id:
            return WeddingResolution(
                self.config.default_wedding_id, ResolutionSource.SELF_HOSTED_DEFAULT
            )
        return None

    async def saas_domain(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[WeddingResolution]:
        if not self.config.is_saas:
            return None
        return await self._bounded(
            self.resolve_from_domain(request, lookup),
            f"host {request.hostname!r}",
        )

    async def resolve_from_domain(
        self,
        request: ResolutionRequest,
        lookup: WeddingLookupProtocol,
    ) -> Optional[WeddingResolution]:
        """Custom domain, then subdomain, then ``/w/<slug>``. Unbounded."""
        host = strip_port(request.hostname)

        candidates = domain_candidates(host)
        if candidates:
            wedding_id = await lookup.find_verified_domain(candidates)
            if wedding_id:
                return WeddingResolution(wedding_id, ResolutionSource.CUSTOM_DOMAIN)

        subdomain = extract_subdomain(
            host, allow_local_patterns=self.config.local_testing_enabled
        )
        if subdomain:
            wedding_id = await lookup.find_by_subdomain(subdomain)
            if wedding_id:
                return WeddingResolution(wedding_id, ResolutionSource.SUBDOMAIN)

        slug = extract_slug_from_path(request.path)
        if slug:
            wedding_id = await lookup.find_by_slug(slug)
            if wedding_id:
                return WeddingResolution(wedding_id, ResolutionSource.PATH_SLUG)

        return None

    async def _bounded(self, awaitable: Awaitable, what: str):
        """
        Await ``awaitable`` within the configured budget.

        Returns None on timeout or error. A lookup still running when the
        budget runs out is cancelled and left behind; its cleanup is never
        awaited and its outcome is discarded.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=self.config.timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            task.cancel()
            task.add_done_callback(_discard_outcome)
            logger.warning(
                f"Wedding resolution for {what} exceeded {self.config.timeout_seconds:.2f}s; "
                f"continuing without a wedding"
            )
            return None

        try:
            return task.result()
        except Exception:
            logger.exception(f"Error resolving wedding for {what}; continuing without a wedding")
        return None


def _discard_outcome(task: "asyncio.Future") -> None:
    """Done-callback for abandoned lookups: retrieve the error so it is not reported as unhandled."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned wedding lookup failed late: {task.exception()!r}")
