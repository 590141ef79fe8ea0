"""
Pure helpers for reading tenant hints out of a request URL.

Nothing in here touches the database, so every rule is unit-testable on
plain strings.
"""

import re
from typing import List, Optional


IPV4_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
WEDDING_PATH_PATTERN = re.compile(r"^/w/([^/]+)")
STATIC_ASSET_PATTERN = re.compile(r"\.(svg|png|jpg|jpeg|gif|webp|ico)$", re.IGNORECASE)

# Sections that never carry tenant context: framework assets, health check,
# storefront, customer dashboard, onboarding and auth.
TENANTLESS_PATH_PREFIXES = (
    "/_next",
    "/static",
    "/api/health",
    "/store",
    "/dashboard",
    "/onboarding",
    "/auth",
)

LOCAL_HOST_SUFFIXES = (".localhost", ".lvh.me")


def strip_port(host: str) -> str:
    """
    Drop any ``:port`` suffix and lowercase the host.

    Handles bracketed IPv6 literals: ``[::1]:3000`` -> ``::1``.
    """
    host = (host or "").strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


def normalize_hostname(host: str) -> str:
    """Strip the port and collapse a leading ``www.`` (idempotent)."""
    host = strip_port(host)
    while host.startswith("www.") and host.count(".") >= 2:
        host = host[len("www."):]
    return host


def domain_candidates(host: str) -> List[str]:
    """
    Hostnames a verified custom-domain row may be stored under.

    ``www.couple.com`` and ``couple.com`` yield the same set, exact host
    first.
    """
    raw = strip_port(host)
    if not raw:
        return []
    normalized = normalize_hostname(raw)
    candidates = [raw, normalized]
    if "." in normalized and not is_ipv4(normalized):
        candidates.append(f"www.{normalized}")
    return list(dict.fromkeys(candidates))


def is_ipv4(host: str) -> bool:
    return bool(IPV4_PATTERN.match(host))


def extract_subdomain(host: str, allow_local_patterns: bool = False) -> Optional[str]:
    """
    Extract the tenant subdomain label from a hostname.

    - ``couple.weddingplatform.com`` -> ``couple``
    - ``localhost`` / ``127.0.0.1`` -> None
    - ``couple.localhost`` and ``couple.lvh.me`` -> ``couple``, only when
      ``allow_local_patterns`` is set
    """
    domain = strip_port(host)
    if not domain or domain == "localhost" or is_ipv4(domain):
        return None

    if allow_local_patterns:
        for suffix in LOCAL_HOST_SUFFIXES:
            if domain.endswith(suffix) and len(domain) > len(suffix):
                return domain.split(".")[0] or None

    parts = domain.split(".")
    if len(parts) >= 3 and parts[0]:
        return parts[0]
    return None


def extract_slug_from_path(path: str) -> Optional[str]:
    """``/w/jane-and-sam/rsvp`` -> ``jane-and-sam``."""
    match = WEDDING_PATH_PATTERN.match(path or "")
    if not match:
        return None
    return match.group(1)


def path_has_prefix(path: str, prefix: str) -> bool:
    """True when ``path`` is ``prefix`` or sits below it."""
    return path == prefix or path.startswith(prefix + "/")


def is_tenantless_path(path: str) -> bool:
    """Paths that bypass tenant resolution entirely."""
    path = path or "/"
    if any(path_has_prefix(path, prefix) for prefix in TENANTLESS_PATH_PREFIXES):
        return True
    return bool(STATIC_ASSET_PATTERN.search(path))
