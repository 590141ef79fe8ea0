import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .auth import get_request_user_id
from .core.config import Settings, get_settings
from .core.db import dispose_engine
from .core.responses import success_response
from .routes_admin import router as admin_domains_router
from .tenancy.config import ResolverConfig
from .tenancy.context import get_wedding_id_from_request
from .tenancy.middleware import Authenticator, LookupFactory, WeddingTenantMiddleware
from .tenancy.queries import open_wedding_lookup


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await dispose_engine()


def create_app(
    settings: Optional[Settings] = None,
    lookup_factory: LookupFactory = open_wedding_lookup,
    authenticate: Authenticator = get_request_user_id,
) -> FastAPI:
    settings = settings or get_settings()
    resolver_config = ResolverConfig.from_settings(settings)
    logger.info(
        f"Starting wedding site backend (mode={resolver_config.deployment_mode.value}, "
        f"local_testing={resolver_config.local_testing_enabled})"
    )

    app = FastAPI(title="Wedding Site Backend", lifespan=lifespan)
    app.state.resolver_config = resolver_config

    # Added first so CORS wraps the tenant middleware.
    app.add_middleware(
        WeddingTenantMiddleware,
        config=resolver_config,
        lookup_factory=lookup_factory,
        authenticate=authenticate,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/wedding/context")
    async def wedding_context(request: Request):
        resolution = getattr(request.state, "wedding_resolution", None)
        return success_response(
            {
                "wedding_id": get_wedding_id_from_request(request),
                "source": resolution.source.value if resolution else None,
            }
        )

    app.include_router(admin_domains_router)
    return app


app = create_app()
