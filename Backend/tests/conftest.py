"""
Pytest configuration and fixtures.

Tenant resolution is tested against in-memory fakes of ``WeddingLookup`` so
precedence, timeout and failure behaviour can be asserted without a database.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi import FastAPI
from starlette.requests import Request

from wedsite.core.config import get_settings
from wedsite.tenancy.config import DeploymentMode, ResolverConfig
from wedsite.tenancy.queries import WeddingLookup


TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"


# ────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────

@pytest.fixture
def saas_config():
    """Production-like SaaS config: no local-testing overrides."""
    return ResolverConfig(
        deployment_mode=DeploymentMode.SAAS,
        enable_local_testing_overrides=False,
        is_development=False,
        is_production=True,
    )


@pytest.fixture
def local_config():
    """SaaS config with local-testing overrides enabled."""
    return ResolverConfig(
        deployment_mode=DeploymentMode.SAAS,
        enable_local_testing_overrides=True,
        is_development=True,
    )


@pytest.fixture
def self_hosted_config():
    return ResolverConfig(
        deployment_mode=DeploymentMode.SELF_HOSTED,
        default_wedding_id="X",
        enable_local_testing_overrides=True,
    )


@pytest.fixture
def auth_secret(monkeypatch):
    """Configure the JWT secret through the environment."""
    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    get_settings.cache_clear()
    yield TEST_JWT_SECRET
    get_settings.cache_clear()


@pytest.fixture
def make_token():
    def _make(sub="U1", secret=TEST_JWT_SECRET, audience="authenticated", expires_in=3600):
        payload = {"sub": sub, "aud": audience, "exp": int(time.time()) + expires_in}
        return jwt.encode(payload, secret, algorithm="HS256")
    return _make


# ────────────────────────────────────────────────────────────────
# Lookup fakes
# ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_lookup():
    """
    Build an ``AsyncMock(spec=WeddingLookup)`` backed by plain dicts.

    Args:
        domains: verified domain -> wedding id
        subdomains: subdomain -> wedding id (matched case-insensitively)
        slugs: slug -> wedding id
        owners: set of (wedding_id, customer_id)
    """
    def _make(domains=None, subdomains=None, slugs=None, owners=()):
        domains = domains or {}
        subdomains = {k.lower(): v for k, v in (subdomains or {}).items()}
        slugs = slugs or {}
        owners = set(owners)

        def find_verified_domain(candidates):
            for candidate in candidates:
                if candidate in domains:
                    return domains[candidate]
            return None

        lookup = AsyncMock(spec=WeddingLookup)
        lookup.find_verified_domain.side_effect = find_verified_domain
        lookup.find_by_subdomain.side_effect = lambda s: subdomains.get(s.lower())
        lookup.find_by_slug.side_effect = lambda s: slugs.get(s)
        lookup.is_owner.side_effect = lambda w, c: (w, c) in owners
        return lookup
    return _make


@pytest.fixture
def hanging():
    """Async side effect that never finishes in test time."""
    async def _hang(*args, **kwargs):
        await asyncio.sleep(30)
    return _hang


@pytest.fixture
def slow_to_cancel():
    """Async side effect that hangs, then takes 0.5s to clean up once cancelled."""
    async def _hang(*args, **kwargs):
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            await asyncio.sleep(0.5)
            raise
    return _hang


@pytest.fixture
def lookup_factory_for():
    """Wrap a lookup in the async context manager the middleware expects."""
    def _factory_for(lookup):
        @asynccontextmanager
        async def factory():
            yield lookup
        return factory
    return _factory_for


# ────────────────────────────────────────────────────────────────
# Requests and sessions
# ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_request():
    """Build a bare Starlette request for dependency/unit tests."""
    def _make(path="/", headers=None, cookies=None, query_string="", config=None, state=None):
        raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
        if cookies:
            cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
            raw_headers.append((b"cookie", cookie_header.encode()))

        app = FastAPI()
        if config is not None:
            app.state.resolver_config = config

        scope = {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "query_string": query_string.encode(),
            "headers": raw_headers,
            "server": ("testserver", 80),
            "app": app,
            "state": dict(state or {}),
        }
        return Request(scope)
    return _make


@pytest.fixture
def mock_db_session():
    """Mock AsyncSession: async I/O methods, sync ``add``."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session
