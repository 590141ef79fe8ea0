"""
Tenancy configuration.

``ResolverConfig`` is built once at startup from ``Settings`` and handed to the
resolver and middleware, so nothing in the request path reads the process
environment.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.config import Settings


# ────────────────────────────────────────────────────────────────
# Wire names
# ────────────────────────────────────────────────────────────────

WEDDING_ID_HEADER = "x-wedding-id"
WEDDING_ID_COOKIE = "wedding_id"
PATHNAME_HEADER = "x-pathname"

# Local-testing query overrides
WEDDING_ID_QUERY_PARAM = "weddingId"
SUBDOMAIN_QUERY_PARAM = "subdomain"

ADMIN_PATH_PREFIX = "/admin"
SIGN_IN_PATH = "/auth/sign-in"

DEFAULT_TIMEOUT_SECONDS = 2.0
SECONDS_PER_DAY = 60 * 60 * 24


class DeploymentMode(str, Enum):
    """How the platform is deployed."""

    SAAS = "saas"                # Many weddings, resolved per request
    SELF_HOSTED = "self-hosted"  # One wedding, fixed by DEFAULT_WEDDING_ID


@dataclass(frozen=True)
class ResolverConfig:
    """
    Immutable configuration for tenant resolution.

    Attributes:
        deployment_mode: SaaS or self-hosted
        default_wedding_id: Wedding served by a self-hosted install
        enable_local_testing_overrides: Honour ``?weddingId=`` / ``?subdomain=``
            and the ``*.localhost`` / ``*.lvh.me`` host patterns
        is_development: Running in a development environment
        is_production: Running in production (cookie gets ``Secure``)
        timeout_seconds: Budget for the datastore-backed strategies
        cookie_max_age_seconds: Lifetime of the ``wedding_id`` cookie
    """

    deployment_mode: DeploymentMode = DeploymentMode.SAAS
    default_wedding_id: Optional[str] = None
    enable_local_testing_overrides: bool = True
    is_development: bool = False
    is_production: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cookie_max_age_seconds: int = 30 * SECONDS_PER_DAY

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")

    @property
    def local_testing_enabled(self) -> bool:
        return self.enable_local_testing_overrides or self.is_development

    @property
    def is_saas(self) -> bool:
        return self.deployment_mode is DeploymentMode.SAAS

    @property
    def is_self_hosted(self) -> bool:
        return self.deployment_mode is DeploymentMode.SELF_HOSTED

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResolverConfig":
        """
        Build the resolver configuration from application settings.

        Raises:
            ValueError: If DEPLOYMENT_MODE is not a known mode
        """
        try:
            mode = DeploymentMode(settings.deployment_mode.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown DEPLOYMENT_MODE {settings.deployment_mode!r}; "
                f"expected one of {[m.value for m in DeploymentMode]}"
            ) from None

        return cls(
            deployment_mode=mode,
            default_wedding_id=settings.default_wedding_id or None,
            enable_local_testing_overrides=settings.enable_localhost_testing,
            is_development=settings.is_development,
            is_production=settings.is_production,
            timeout_seconds=settings.tenant_resolution_timeout_ms / 1000,
            cookie_max_age_seconds=settings.wedding_cookie_max_age_days * SECONDS_PER_DAY,
        )
