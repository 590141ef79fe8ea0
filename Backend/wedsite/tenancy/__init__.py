"""
Multi-tenancy package.

Modules:
    config: ResolverConfig, deployment modes and wire names
    hostnames: Pure host/path parsing rules
    queries: Wedding lookups and ownership checks
    resolver: Ordered, time-bounded wedding resolution
    middleware: Starlette middleware publishing the wedding id
    context: FastAPI dependencies reading the resolved wedding
"""

from .config import (
    DeploymentMode,
    ResolverConfig,
    WEDDING_ID_COOKIE,
    WEDDING_ID_HEADER,
)
from .context import (
    WeddingAccess,
    get_wedding_id_from_request,
    require_wedding_id,
    require_wedding_owner,
)
from .hostnames import (
    domain_candidates,
    extract_slug_from_path,
    extract_subdomain,
    is_tenantless_path,
    normalize_hostname,
    strip_port,
)
from .middleware import WeddingTenantMiddleware
from .queries import (
    WeddingLookup,
    get_user_weddings,
    open_wedding_lookup,
    verify_wedding_ownership,
)
from .resolver import (
    ResolutionRequest,
    ResolutionSource,
    TenantResolver,
    WeddingResolution,
)

__all__ = [
    # Config
    "DeploymentMode",
    "ResolverConfig",
    "WEDDING_ID_COOKIE",
    "WEDDING_ID_HEADER",
    # Context
    "WeddingAccess",
    "get_wedding_id_from_request",
    "require_wedding_id",
    "require_wedding_owner",
    # Hostnames
    "domain_candidates",
    "extract_slug_from_path",
    "extract_subdomain",
    "is_tenantless_path",
    "normalize_hostname",
    "strip_port",
    # Middleware
    "WeddingTenantMiddleware",
    # Queries
    "WeddingLookup",
    "get_user_weddings",
    "open_wedding_lookup",
    "verify_wedding_ownership",
    # Resolver
    "ResolutionRequest",
    "ResolutionSource",
    "TenantResolver",
    "WeddingResolution",
]
